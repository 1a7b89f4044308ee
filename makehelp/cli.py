"""CLI entrypoint for make-help."""

from __future__ import annotations

import argparse
import shlex
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Set

from . import __version__
from .config import DEFAULT_HELP_CATEGORY, HelpOptions, load_config
from .discovery.makefile import resolve_makefile_path
from .errors import BadRelativePathError, ConflictingFlagsError, MakeHelpError, UsageError
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .render.colors import should_use_color
from .render.formats import DEFAULT_FORMAT, resolve_format
from .rewrite.placement import extract_command_line, find_existing_help_file

_RESTORE_FORBIDDEN = ("--remove-help", "--dry-run", "--lint", "--fix", "--target", "--show-help")
_NEUTRAL_FLAGS = ("--makefile-path", "-v", "--verbose")

logger = get_logger("cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="make-help",
        description=(
            "Generate help output from `##` documentation comments in Makefiles. "
            "By default a static help.mk is generated and included from the Makefile."
        ),
        epilog=(
            "Documentation directives (in ## comments): !file, !category, !var, "
            "!alias, !notalias."
        ),
    )

    modes = parser.add_argument_group("mode")
    modes.add_argument("--show-help", action="store_true", help="Display help dynamically.")
    modes.add_argument(
        "--target", default="", help="Show detailed help for a target (requires --show-help)."
    )
    modes.add_argument(
        "--remove-help", action="store_true", help="Remove generated help targets and files."
    )
    modes.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what files would be created or fixed without making changes.",
    )
    modes.add_argument(
        "--lint", action="store_true", help="Check documentation quality and report issues."
    )
    modes.add_argument(
        "--fix", action="store_true", help="Apply auto-fixable lint fixes (requires --lint)."
    )

    inputs = parser.add_argument_group("input")
    inputs.add_argument(
        "--makefile-path", default="", help="Path to the Makefile (defaults to ./Makefile)."
    )
    inputs.add_argument(
        "--help-file-rel-path",
        default="",
        help="Relative path for the generated help file (e.g. help.mk or make/help.mk).",
    )

    output = parser.add_argument_group("output/formatting")
    color = output.add_mutually_exclusive_group()
    color.add_argument(
        "--color", dest="color", action="store_const", const=True, help="Force colored output."
    )
    color.add_argument(
        "--no-color", dest="color", action="store_const", const=False, help="Disable colors."
    )
    output.add_argument(
        "--include-target",
        action="append",
        default=[],
        metavar="TARGET",
        help="Include an undocumented target (repeatable, comma-separated).",
    )
    output.add_argument(
        "--include-all-phony", action="store_true", help="Include every .PHONY target."
    )
    output.add_argument(
        "--keep-order-categories", action="store_true", help="Keep category discovery order."
    )
    output.add_argument(
        "--keep-order-targets", action="store_true", help="Keep target discovery order."
    )
    output.add_argument("--keep-order-files", action="store_true", help="Keep file discovery order.")
    output.add_argument(
        "--keep-order-all", action="store_true", help="Keep category, target and file order."
    )
    output.add_argument(
        "--category-order",
        action="append",
        default=[],
        metavar="CATEGORIES",
        help="Explicit category order (comma-separated).",
    )
    output.add_argument(
        "--default-category", default="", help="Category for uncategorized targets."
    )
    output.add_argument(
        "--format",
        default=DEFAULT_FORMAT,
        metavar="FORMAT",
        help="Output format for --show-help: make, text, html, markdown or json (default: make).",
    )
    output.add_argument(
        "--output",
        default="",
        metavar="PATH",
        help="Write --show-help output to PATH instead of stdout (- for stdout).",
    )
    output.add_argument(
        "--help-category",
        default=None,
        help=f"Category for the generated help targets (default: {DEFAULT_HELP_CATEGORY}).",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint for make-help."""
    parser = _build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        _validate(args)
        options, explicit = _options_from_args(args)
        if _is_generate(args) and not has_any_options(argv):
            options, explicit = _restore_options(parser, options, explicit)
        load_config(Path(options.makefile_path)).apply_to(options, explicit)
    except UsageError as exc:
        parser.exit(2, f"Error: {exc}\n")
    except MakeHelpError as exc:
        parser.exit(1, f"Error: {exc}\n")

    orchestrator = Orchestrator()
    try:
        if args.lint:
            return orchestrator.run_lint(options)
        if args.show_help and args.target:
            orchestrator.run_detailed(options)
        elif args.show_help:
            orchestrator.run_render(options)
        elif args.remove_help:
            orchestrator.run_remove(options)
        else:
            orchestrator.run_generate(options)
    except UsageError as exc:
        parser.exit(2, f"Error: {exc}\n")
    except MakeHelpError as exc:
        parser.exit(1, f"Error: {exc}\n")
    except Exception as exc:  # pragma: no cover
        logger.debug("Unexpected failure", exc_info=True)
        parser.exit(1, f"make-help failed: {exc}\nRun with --verbose for more details.\n")
    return 0


def has_any_options(argv: Sequence[str]) -> bool:
    """True when argv carries a flag beyond the Makefile path and verbosity."""
    skip_value = False
    for arg in argv:
        if skip_value:
            skip_value = False
            continue
        if arg == "--makefile-path":
            skip_value = True
            continue
        if arg.startswith("--makefile-path=") or arg in _NEUTRAL_FLAGS:
            continue
        if arg.startswith("-"):
            return True
    return False


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _is_generate(args: argparse.Namespace) -> bool:
    return not (args.show_help or args.remove_help or args.lint)


def _validate(args: argparse.Namespace) -> None:
    if args.remove_help:
        incompatible = [
            (bool(args.target), "--target"),
            (bool(args.include_target), "--include-target"),
            (args.include_all_phony, "--include-all-phony"),
            (args.show_help, "--show-help"),
            (args.dry_run, "--dry-run"),
            (args.lint, "--lint"),
            (bool(args.help_file_rel_path), "--help-file-rel-path"),
            (args.keep_order_categories, "--keep-order-categories"),
            (args.keep_order_targets, "--keep-order-targets"),
            (args.keep_order_files, "--keep-order-files"),
            (args.keep_order_all, "--keep-order-all"),
            (bool(args.category_order), "--category-order"),
            (bool(args.default_category), "--default-category"),
            (args.format != DEFAULT_FORMAT, "--format"),
            (bool(args.output), "--output"),
        ]
        for is_set, flag in incompatible:
            if is_set:
                raise ConflictingFlagsError(f"--remove-help cannot be used with {flag}")

    if args.target and not args.show_help:
        raise ConflictingFlagsError("--target can only be used with --show-help")
    if not args.show_help and not args.remove_help:
        if args.format != DEFAULT_FORMAT:
            raise ConflictingFlagsError("--format can only be used with --show-help")
        if args.output:
            raise ConflictingFlagsError("--output can only be used with --show-help")
    resolve_format(args.format)
    if args.dry_run and args.show_help:
        raise ConflictingFlagsError("--dry-run cannot be used with --show-help")
    if args.lint:
        if args.show_help:
            raise ConflictingFlagsError("--lint cannot be used with --show-help")
        if args.dry_run and not args.fix:
            raise ConflictingFlagsError("--dry-run with --lint requires --fix")
    if args.fix and not args.lint:
        raise ConflictingFlagsError("--fix requires --lint")
    if args.help_file_rel_path and Path(args.help_file_rel_path).is_absolute():
        raise BadRelativePathError(args.help_file_rel_path)


def _use_color(args: argparse.Namespace) -> bool:
    if args.output and args.output != "-" and args.color is None:
        return False
    return should_use_color(args.color, sys.stdout)


def _split_list(values: Sequence[str]) -> List[str]:
    items: List[str] = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def _options_from_args(args: argparse.Namespace) -> tuple[HelpOptions, Set[str]]:
    keep_all = bool(args.keep_order_all)
    options = HelpOptions(
        makefile_path=resolve_makefile_path(args.makefile_path),
        help_file_rel_path=args.help_file_rel_path,
        use_color=_use_color(args),
        include_targets=_split_list(args.include_target),
        include_all_phony=bool(args.include_all_phony),
        keep_order_categories=keep_all or bool(args.keep_order_categories),
        keep_order_targets=keep_all or bool(args.keep_order_targets),
        keep_order_files=keep_all or bool(args.keep_order_files),
        category_order=_split_list(args.category_order),
        default_category=args.default_category,
        help_category=args.help_category or DEFAULT_HELP_CATEGORY,
        target=args.target,
        dry_run=bool(args.dry_run),
        fix=bool(args.fix),
        verbose=bool(args.verbose),
        output_format=resolve_format(args.format),
        output=args.output,
    )

    explicit: Set[str] = set()
    if args.color is not None:
        explicit.add("use_color")
    if args.help_category is not None:
        explicit.add("help_category")
    for name in (
        "help_file_rel_path",
        "include_targets",
        "include_all_phony",
        "keep_order_categories",
        "keep_order_targets",
        "keep_order_files",
        "category_order",
        "default_category",
    ):
        if getattr(options, name):
            explicit.add(name)
    return options, explicit


def _restore_options(
    parser: argparse.ArgumentParser, options: HelpOptions, explicit: Set[str]
) -> tuple[HelpOptions, Set[str]]:
    """Reuse the flags recorded in an existing help file's `# command:` line."""
    existing = find_existing_help_file(options.makefile_path, options.help_file_rel_path)
    if existing is None:
        return options, explicit
    command_line = extract_command_line(existing)
    if not command_line.startswith("make-help"):
        return options, explicit

    tokens = shlex.split(command_line)[1:]
    forbidden = _forbidden_flag(tokens)
    if forbidden:
        logger.warning(
            "Ignoring options in %s: mode flag %s is not allowed when restoring", existing, forbidden
        )
        return options, explicit

    restored_args, unknown = parser.parse_known_args(tokens)
    if unknown:
        logger.debug("Ignoring unknown options from %s: %s", existing, " ".join(unknown))
    _validate(restored_args)

    logger.debug("Restoring options from existing help file: %s", existing)
    logger.debug("Command line: %s", command_line)
    restored, restored_explicit = _options_from_args(restored_args)
    restored.makefile_path = options.makefile_path
    restored.verbose = options.verbose
    return restored, restored_explicit


def _forbidden_flag(tokens: Sequence[str]) -> Optional[str]:
    for token in tokens:
        for flag in _RESTORE_FORBIDDEN:
            if token == flag or token.startswith(flag + "="):
                return flag
    return None


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
