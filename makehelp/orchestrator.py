"""Pipeline orchestration for the render, generate, remove and lint flows."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import IO, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .builder import BuilderConfig, ModelBuilder
from .config import HelpOptions
from .discovery.executor import GENERATING_ENV, SubprocessGateway
from .discovery.files import discover_makefiles
from .discovery.makefile import (
    resolve_makefile_path,
    validate_makefile_exists,
    validate_makefile_syntax,
)
from .discovery.targets import discover_targets
from .errors import ConflictWithExistingTargetError, MakeHelpError, RecursionDetectedError
from .generator import (
    HELP_TARGET,
    UPDATE_TARGET,
    GeneratorConfig,
    HelpFileGenerator,
    add_generated_targets,
)
from .lint import CheckContext, Fixer, all_checks, collect_fixes, format_report, run_checks
from .logging import get_logger
from .models import HelpModel, ParsedFile, TargetDatabase
from .ordering import OrderingService
from .parser.scanner import Scanner
from .render.formats import Formatter, create_formatter
from .render.text import write_lines
from .rewrite.atomic import atomic_write
from .rewrite.include import add_include_directive, include_directive, relative_help_path
from .rewrite.placement import Placement, determine_target_file, find_generated_help_files
from .rewrite.remove import HelpRemover, RemovalResult


@dataclass
class GenerateOutcome:
    """Result of a help file generation run."""

    placement: Placement
    content: str
    dry_run: bool
    include_added: bool = False


class Orchestrator:
    """Coordinates discovery, parsing, model building and output for each mode."""

    def __init__(
        self,
        gateway: SubprocessGateway | None = None,
        scanner: Scanner | None = None,
        generator: HelpFileGenerator | None = None,
        remover: HelpRemover | None = None,
        stdout: IO[str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.gateway = gateway or SubprocessGateway()
        self.scanner = scanner or Scanner()
        self.generator = generator or HelpFileGenerator()
        self.remover = remover or HelpRemover(self.gateway)
        self.logger = get_logger("orchestrator")
        self._stdout = stdout
        self._environ = environ

    @property
    def stdout(self) -> IO[str]:
        return self._stdout if self._stdout is not None else sys.stdout

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def run_render(self, options: HelpOptions) -> HelpModel:
        """Print the help summary for every documented target."""
        makefile_path = self._resolve_entry(options)
        makefiles = discover_makefiles(self.gateway, makefile_path)
        parsed_files = self._scan(makefiles)
        database = discover_targets(self.gateway, makefile_path)

        model, _ = self._build_model(options, parsed_files, database, makefile_path)
        self._ordering(options).apply(model)

        formatter = self._formatter(options, makefile_path)
        self._emit(options, formatter.render_help(model))
        return model

    def run_detailed(self, options: HelpOptions) -> None:
        """Print the detailed view of `options.target`."""
        name = options.target
        makefile_path = self._resolve_entry(options)
        database = discover_targets(self.gateway, makefile_path)
        if name not in database.targets:
            raise MakeHelpError(f"target not found: {name}")

        makefiles = discover_makefiles(self.gateway, makefile_path)
        parsed_files = self._scan(makefiles)
        model, _ = self._build_model(options, parsed_files, database, makefile_path)

        formatter = self._formatter(options, makefile_path)
        target = next((item for item in model.iter_targets() if item.name == name), None)
        if target is not None and target.documentation:
            text = formatter.render_detailed(target)
        elif target is not None:
            text = formatter.render_basic(name, target.source_file, target.line_number)
        else:
            source_file, line_number = _locate(name, parsed_files)
            text = formatter.render_basic(name, source_file, line_number)
        self._emit(options, text)

    def run_generate(self, options: HelpOptions) -> GenerateOutcome:
        """Write (or preview) the static help file and wire it into the Makefile."""
        self._check_recursion()
        makefile_path = self._resolve_entry(options)
        self.logger.debug("Using Makefile: %s", makefile_path)
        validate_makefile_syntax(self.gateway, makefile_path)

        makefiles = discover_makefiles(self.gateway, makefile_path)
        database = discover_targets(self.gateway, makefile_path)

        placement = determine_target_file(
            makefile_path, options.help_file_rel_path, create_dirs=not options.dry_run
        )
        self.logger.debug(
            "Target file: %s (needs include: %s)", placement.path, placement.needs_include
        )
        help_files = _normalized(
            find_generated_help_files(makefile_path, options.help_file_rel_path)
        )
        help_files.add(os.path.normpath(placement.path))
        sources = [path for path in makefiles if os.path.normpath(path) not in help_files]
        self.logger.debug(
            "Total makefiles discovered: %d, after filtering help files: %d",
            len(makefiles),
            len(sources),
        )

        parsed_files = self._scan(sources)
        model, _ = self._build_model(options, parsed_files, database, makefile_path)
        _check_conflicts(model, parsed_files)
        add_generated_targets(model, options.help_category)
        self._ordering(options).apply(model)
        self.logger.debug(
            "Found %d documented target(s)", sum(1 for _ in model.iter_targets())
        )

        content = self.generator.generate(
            GeneratorConfig(
                model=model,
                makefile_dir=os.path.dirname(makefile_path),
                help_dir=os.path.dirname(placement.path),
                makefile_path=makefile_path,
                makefiles=sources,
                help_filename=os.path.basename(placement.path),
                command_line=options.command_line,
                use_color=options.use_color,
                keep_order_categories=options.keep_order_categories,
                keep_order_targets=options.keep_order_targets,
                keep_order_files=options.keep_order_files,
                category_order=list(options.category_order),
                default_category=options.default_category,
                include_targets=list(options.include_targets),
                include_all_phony=options.include_all_phony,
                help_category=options.help_category,
            )
        )

        outcome = GenerateOutcome(placement=placement, content=content, dry_run=options.dry_run)
        if options.dry_run:
            write_lines(_dry_run_lines(makefile_path, placement, content), self.stdout)
            return outcome

        # The help file is written last so it is not older than the Makefile.
        if placement.needs_include:
            outcome.include_added = add_include_directive(makefile_path, placement.path)
            if outcome.include_added:
                self.logger.debug("Added include directive to: %s", makefile_path)
        atomic_write(placement.path, content)
        self.logger.debug("Created help target file: %s", placement.path)
        self.stdout.write(f"Successfully created help target: {placement.path}\n")
        return outcome

    def run_remove(self, options: HelpOptions) -> RemovalResult:
        makefile_path = self._resolve_entry(options)
        self.logger.debug("Using Makefile: %s", makefile_path)
        result = self.remover.remove(makefile_path, options.help_file_rel_path)
        self.stdout.write(result.message() + "\n")
        return result

    def run_lint(self, options: HelpOptions) -> int:
        """Report documentation problems; returns the process exit code."""
        self._check_recursion()
        makefile_path = self._resolve_entry(options)
        self.logger.debug("Using Makefile: %s", makefile_path)

        makefiles = discover_makefiles(self.gateway, makefile_path)
        help_files = _normalized(
            find_generated_help_files(makefile_path, options.help_file_rel_path)
        )
        sources = [path for path in makefiles if os.path.normpath(path) not in help_files]
        parsed_files = self._scan(sources)
        database = discover_targets(self.gateway, makefile_path)

        lint_options = HelpOptions(default_category=options.default_category)
        model, not_alias = self._build_model(lint_options, parsed_files, database, makefile_path)

        checks = all_checks()
        context = CheckContext.create(model, makefile_path, database, parsed_files, not_alias)
        warnings = run_checks(context, checks)

        fix_result = None
        if options.fix and any(warning.fixable for warning in warnings):
            fixer = Fixer(dry_run=options.dry_run)
            fix_result = fixer.apply(collect_fixes(checks, warnings))

        displayed = warnings
        if fix_result is not None and not options.dry_run and fix_result.total_fixed:
            displayed = [warning for warning in warnings if not warning.fixable]

        write_lines(format_report(displayed, fix_result, dry_run=options.dry_run), self.stdout)
        if displayed:
            return 1
        self.logger.debug("No warnings found")
        return 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _check_recursion(self) -> None:
        environ = self._environ if self._environ is not None else os.environ
        if environ.get(GENERATING_ENV) == "1":
            raise RecursionDetectedError()

    def _resolve_entry(self, options: HelpOptions) -> str:
        makefile_path = resolve_makefile_path(options.makefile_path)
        validate_makefile_exists(makefile_path)
        options.makefile_path = makefile_path
        return makefile_path

    def _scan(self, makefiles: Iterable[str]) -> List[ParsedFile]:
        parsed = [self.scanner.scan_file(path) for path in makefiles]
        self.logger.debug("Parsed %d Makefile(s)", len(parsed))
        return parsed

    def _build_model(
        self,
        options: HelpOptions,
        parsed_files: Sequence[ParsedFile],
        database: TargetDatabase,
        entry_point: str,
    ) -> Tuple[HelpModel, Set[str]]:
        builder = ModelBuilder(
            BuilderConfig(
                default_category=options.default_category,
                include_targets=list(options.include_targets),
                include_all_phony=options.include_all_phony,
                database=database,
                entry_point=entry_point,
            )
        )
        model = builder.build(parsed_files)
        self.logger.debug("Built help model with %d categor(ies)", len(model.categories))
        return model, builder.not_alias_targets

    @staticmethod
    def _ordering(options: HelpOptions) -> OrderingService:
        return OrderingService(
            keep_order_categories=options.keep_order_categories,
            keep_order_targets=options.keep_order_targets,
            keep_order_files=options.keep_order_files,
            category_order=list(options.category_order),
        )

    @staticmethod
    def _formatter(options: HelpOptions, makefile_path: str) -> Formatter:
        return create_formatter(
            options.output_format,
            use_color=options.use_color,
            makefile_dir=os.path.dirname(makefile_path),
        )

    def _emit(self, options: HelpOptions, text: str) -> None:
        if options.output and options.output != "-":
            atomic_write(options.output, text)
            self.logger.debug("Wrote %s help to %s", options.output_format, options.output)
            return
        self.stdout.write(text)


def _normalized(paths: Iterable[str]) -> Set[str]:
    return {os.path.normpath(path) for path in paths}


def _locate(name: str, parsed_files: Sequence[ParsedFile]) -> Tuple[str, int]:
    for parsed in parsed_files:
        if name in parsed.target_map:
            return parsed.path, parsed.target_map[name]
    return "", 0


def _check_conflicts(model: HelpModel, parsed_files: Sequence[ParsedFile]) -> None:
    reserved = {HELP_TARGET, UPDATE_TARGET}
    reserved.update(f"help-{target.name}" for target in model.iter_targets())
    for parsed in parsed_files:
        for name in parsed.target_map:
            if name in reserved:
                raise ConflictWithExistingTargetError(name, parsed.path)


def _dry_run_lines(makefile_path: str, placement: Placement, content: str) -> List[str]:
    lines = ["Dry run mode - no files will be modified", "", f"Would create: {placement.path}"]
    if placement.needs_include:
        lines.append(f"Would append to: {makefile_path}")
    lines.extend(["", f"--- {placement.path} ---"])
    lines.extend(content.rstrip("\n").split("\n"))
    lines.append("--- end ---")
    if placement.needs_include:
        rel_path = relative_help_path(makefile_path, placement.path)
        lines.extend(
            [
                "",
                f"--- Append to {makefile_path} ---",
                "",
                include_directive(rel_path),
                "--- end ---",
            ]
        )
    return lines


__all__ = ["GenerateOutcome", "Orchestrator"]
