"""Two-state scanner that associates `##` directives with the next target."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List

from ..errors import ParseReadError
from ..models import Directive, DirectiveKind, ParsedFile
from .directives import extract_target_name, is_documentation_line, is_target_line, parse_directive


class ScannerState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class Scanner:
    """Line scanner producing a ParsedFile per Makefile.

    Directives queue up while the scanner is ACCUMULATING and are flushed to
    the output when a target line follows. Any other line discards the queue.
    `!file` directives, and plain doc lines continuing a `!file` block, are
    emitted immediately.
    """

    def __init__(self) -> None:
        self.state = ScannerState.IDLE
        self._pending: List[Directive] = []
        self._in_file_block = False

    def scan_file(self, path: str) -> ParsedFile:
        try:
            content = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ParseReadError(f"failed to read {path}: {exc}") from exc
        return self.scan_content(content, path)

    def scan_content(self, content: str, path: str) -> ParsedFile:
        self._reset()
        result = ParsedFile(path=path)

        for index, line in enumerate(content.split("\n")):
            line_number = index + 1
            line = line.rstrip("\r")

            if is_documentation_line(line):
                self._handle_doc(parse_directive(line, path, line_number), result)
                continue

            self._in_file_block = False
            if is_target_line(line):
                name = extract_target_name(line)
                if name:
                    result.target_map.setdefault(name, line_number)
                    result.target_lines[line_number] = name
                    self._flush(result)
                    continue

            self._discard()

        self._discard()
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _handle_doc(self, directive: Directive, result: ParsedFile) -> None:
        if directive.kind is DirectiveKind.FILE:
            result.directives.append(directive)
            self._in_file_block = not self._pending
            return
        if directive.kind is DirectiveKind.DOC and self._in_file_block:
            result.directives.append(
                Directive(
                    kind=DirectiveKind.FILE,
                    value=directive.value,
                    source_file=directive.source_file,
                    line_number=directive.line_number,
                )
            )
            return
        self._in_file_block = False
        self._pending.append(directive)
        self.state = ScannerState.ACCUMULATING

    def _flush(self, result: ParsedFile) -> None:
        result.directives.extend(self._pending)
        self._pending = []
        self.state = ScannerState.IDLE

    def _discard(self) -> None:
        self._pending = []
        self.state = ScannerState.IDLE

    def _reset(self) -> None:
        self._pending = []
        self._in_file_block = False
        self.state = ScannerState.IDLE


__all__ = ["Scanner", "ScannerState"]
