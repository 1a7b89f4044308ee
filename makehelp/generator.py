"""Render the static help.mk fragment from a HelpModel."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .config import DEFAULT_HELP_CATEGORY
from .logging import get_logger
from .models import Category, HelpModel, TargetRecord
from .render.colors import ColorScheme, YELLOW, RESET
from .render.escape import escape_for_make_echo
from .render.text import HelpRenderer

TEMPLATE_NAME = "help.mk.j2"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S UTC"
HELP_TARGET = "help"
UPDATE_TARGET = "update-help"
HELP_SUMMARY = "Displays help for available targets."
UPDATE_SUMMARY = "Regenerates help.mk from source Makefiles."

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GeneratorConfig:
    """Settings recorded in, and used to render, a generated help file."""

    model: HelpModel
    makefile_dir: str = ""
    # Directory of the generated file; `$(MAKE_HELP_DIR)` paths are relative to it.
    help_dir: str = ""
    makefile_path: str = ""
    makefiles: List[str] = field(default_factory=list)
    help_filename: str = "help.mk"
    command_line: str = ""
    use_color: bool = False
    keep_order_categories: bool = False
    keep_order_targets: bool = False
    keep_order_files: bool = False
    category_order: List[str] = field(default_factory=list)
    default_category: str = ""
    include_targets: List[str] = field(default_factory=list)
    include_all_phony: bool = False
    help_category: str = DEFAULT_HELP_CATEGORY


class HelpFileGenerator:
    """Produces help.mk content through the bundled Jinja2 template."""

    def __init__(self, templates_dir: Path | None = None, clock: Optional[Clock] = None) -> None:
        self.clock = clock or _utc_now
        self.logger = get_logger("generator")
        self._env = self._create_env(templates_dir)

    def generate(self, config: GeneratorConfig) -> str:
        renderer = HelpRenderer(
            colors=ColorScheme.create(config.use_color),
            makefile_dir=config.makefile_dir,
        )
        model = config.model
        help_lines = [escape_for_make_echo(line) for line in renderer.render_lines(model)]
        target_blocks = [
            {
                "name": target.name,
                "lines": [escape_for_make_echo(line) for line in renderer.detailed_lines(target)],
            }
            for target in model.iter_targets()
        ]

        flags = build_regenerate_flags(config)
        help_dir = config.help_dir or config.makefile_dir
        context: Dict[str, object] = {
            "command_line": config.command_line or "make-help" + flags,
            "date": self.clock().strftime(DATE_FORMAT),
            "makefiles": relativize_makefiles(config.makefiles, help_dir),
            "entry_point": entry_point_from(config.makefile_path, help_dir),
            "help_category": (config.help_category or DEFAULT_HELP_CATEGORY)
            if model.has_categories
            else "",
            "help_filename": config.help_filename or "help.mk",
            "warning_start": escape_for_make_echo(YELLOW) if config.use_color else "",
            "warning_end": escape_for_make_echo(RESET) if config.use_color else "",
            "help_lines": help_lines,
            "target_blocks": target_blocks,
            "flags": flags.replace("$", "$$"),
        }
        self.logger.debug(
            "Rendering %s with %d help line(s) and %d target block(s)",
            TEMPLATE_NAME,
            len(help_lines),
            len(target_blocks),
        )
        return self._env.get_template(TEMPLATE_NAME).render(**context)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def build_regenerate_flags(config: GeneratorConfig) -> str:
    """Flags that reproduce `config` when passed back to make-help."""
    flags: List[str] = []
    if not config.use_color:
        flags.append("--no-color")
    if config.keep_order_categories:
        flags.append("--keep-order-categories")
    if config.keep_order_targets:
        flags.append("--keep-order-targets")
    if config.keep_order_files:
        flags.append("--keep-order-files")
    if config.category_order:
        flags.append(f"--category-order {shlex.quote(','.join(config.category_order))}")
    if config.default_category:
        flags.append(f"--default-category {shlex.quote(config.default_category)}")
    for target in config.include_targets:
        flags.append(f"--include-target {shlex.quote(target)}")
    if config.include_all_phony:
        flags.append("--include-all-phony")
    if config.help_category and config.help_category != DEFAULT_HELP_CATEGORY:
        flags.append(f"--help-category {shlex.quote(config.help_category)}")
    if not flags:
        return ""
    return " " + " ".join(flags)


def relativize_makefiles(makefiles: Sequence[str], base_dir: str) -> List[str]:
    """Express `makefiles` as `$(MAKE_HELP_DIR)` paths relative to `base_dir`."""
    relative: List[str] = []
    for makefile in makefiles:
        clean = os.path.normpath(makefile)
        if not base_dir:
            relative.append(clean)
            continue
        try:
            rel_path = os.path.relpath(clean, os.path.normpath(base_dir))
        except ValueError:
            relative.append(clean)
            continue
        relative.append("$(MAKE_HELP_DIR)" + Path(rel_path).as_posix())
    return relative


def entry_point_from(makefile_path: str, help_dir: str) -> str:
    """Path of the entry Makefile relative to the help file, quoted for a recipe."""
    if not makefile_path:
        return "Makefile"
    if help_dir:
        try:
            rel_path = os.path.relpath(os.path.normpath(makefile_path), os.path.normpath(help_dir))
        except ValueError:
            rel_path = os.path.basename(makefile_path)
    else:
        rel_path = os.path.basename(makefile_path)
    return shlex.quote(Path(rel_path).as_posix()).replace("$", "$$")


def add_generated_targets(model: HelpModel, help_category: str = DEFAULT_HELP_CATEGORY) -> None:
    """Add the `help` and `update-help` targets the generated file defines.

    Existing records with those names are left alone. With categories the
    targets land in `help_category`; otherwise in the single unnamed category.
    """
    existing = {target.name for target in model.iter_targets()}
    next_order = max((target.discovery_order for target in model.iter_targets()), default=-1) + 1

    records: List[TargetRecord] = []
    for name, summary in ((HELP_TARGET, HELP_SUMMARY), (UPDATE_TARGET, UPDATE_SUMMARY)):
        if name in existing:
            continue
        records.append(
            TargetRecord(
                name=name,
                documentation=[summary],
                summary=summary,
                discovery_order=next_order,
            )
        )
        next_order += 1
    if not records:
        return

    if model.has_categories:
        name = help_category or DEFAULT_HELP_CATEGORY
    else:
        name = ""
    category = next((item for item in model.categories if item.name == name), None)
    if category is None:
        order = max((item.discovery_order for item in model.categories), default=-1) + 1
        category = Category(name=name, discovery_order=order)
        model.categories.append(category)
    category.targets.extend(records)


__all__ = [
    "GeneratorConfig",
    "HelpFileGenerator",
    "add_generated_targets",
    "build_regenerate_flags",
    "entry_point_from",
    "relativize_makefiles",
]
