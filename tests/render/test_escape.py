from __future__ import annotations

from makehelp.render.escape import escape_for_make_echo


def test_plain_text_is_unchanged() -> None:
    assert escape_for_make_echo("Build the project.") == "Build the project."


def test_make_and_shell_metacharacters_are_escaped() -> None:
    assert escape_for_make_echo("$(HOME)") == "\\$$(HOME)"
    assert escape_for_make_echo("$VAR") == "\\$$VAR"
    assert escape_for_make_echo('say "hi"') == 'say \\"hi\\"'
    assert escape_for_make_echo("`date`") == "\\`date\\`"
    assert escape_for_make_echo("it's") == "it\\0047s"


def test_backslash_survives_shell_and_printf() -> None:
    assert escape_for_make_echo("a\\b") == "a\\\\\\\\b"
    assert escape_for_make_echo("literal \\n") == "literal \\\\\\\\n"


def test_control_characters_become_printf_sequences() -> None:
    assert escape_for_make_echo("a\tb\nc\r") == "a\\tb\\nc\\r"
    assert escape_for_make_echo("\x1b[0m") == "\\033[0m"
