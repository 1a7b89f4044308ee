"""Configuration loading for make-help (.makehelp.yml) and run options."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .errors import MakeHelpError

CONFIG_FILENAME = ".makehelp.yml"
DEFAULT_HELP_CATEGORY = "Help"


class ConfigError(MakeHelpError):
    """Raised when the configuration file cannot be parsed."""

    kind = "config"


@dataclass
class HelpOptions:
    """Effective settings for one make-help invocation."""

    makefile_path: str = ""
    help_file_rel_path: str = ""
    use_color: bool = False
    include_targets: List[str] = field(default_factory=list)
    include_all_phony: bool = False
    keep_order_categories: bool = False
    keep_order_targets: bool = False
    keep_order_files: bool = False
    category_order: List[str] = field(default_factory=list)
    default_category: str = ""
    help_category: str = DEFAULT_HELP_CATEGORY
    target: str = ""
    dry_run: bool = False
    fix: bool = False
    verbose: bool = False
    command_line: str = ""
    output_format: str = "make"
    output: str = ""


@dataclass
class ProjectConfig:
    """Represents the defaults declared in .makehelp.yml."""

    root: Path
    default_category: Optional[str] = None
    help_category: Optional[str] = None
    category_order: List[str] = field(default_factory=list)
    include_targets: List[str] = field(default_factory=list)
    include_all_phony: Optional[bool] = None
    keep_order_categories: Optional[bool] = None
    keep_order_targets: Optional[bool] = None
    keep_order_files: Optional[bool] = None
    help_file_rel_path: Optional[str] = None
    color: Optional[bool] = None

    def apply_to(self, options: HelpOptions, explicit: Iterable[str] = ()) -> HelpOptions:
        """Fill option fields the user did not pass on the command line."""
        explicit_set = set(explicit)
        option_names = {item.name for item in fields(HelpOptions)}
        for item in fields(self):
            name = item.name
            if name in ("root", "color"):
                continue
            value = getattr(self, name)
            if value is None or value == [] or name in explicit_set or name not in option_names:
                continue
            setattr(options, name, list(value) if isinstance(value, list) else value)
        if self.color is not None and "use_color" not in explicit_set:
            options.use_color = self.color
        return options


def load_config(path: Path) -> ProjectConfig:
    """Load .makehelp.yml from a directory, a Makefile path, or the file itself."""
    config_file = _resolve_config_path(path)
    root = config_file.parent

    if not config_file.exists():
        return ProjectConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    ordering = _as_dict(data.get("ordering"))
    include = _as_dict(data.get("include"))

    return ProjectConfig(
        root=root,
        default_category=_as_str(data.get("default_category")),
        help_category=_as_str(data.get("help_category")),
        category_order=_as_str_list(ordering.get("categories") or data.get("category_order")),
        include_targets=_as_str_list(include.get("targets")),
        include_all_phony=_as_bool(include.get("all_phony")),
        keep_order_categories=_as_bool(ordering.get("keep_categories")),
        keep_order_targets=_as_bool(ordering.get("keep_targets")),
        keep_order_files=_as_bool(ordering.get("keep_files")),
        help_file_rel_path=_as_str(data.get("help_file")),
        color=_as_bool(data.get("color")),
    )


def _resolve_config_path(path: Path) -> Path:
    path = Path(path).expanduser()
    if path.is_dir():
        return (path / CONFIG_FILENAME).resolve()
    if path.name != CONFIG_FILENAME:
        return (path.parent / CONFIG_FILENAME).resolve()
    return path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"expected a mapping in {CONFIG_FILENAME}, got {type(value).__name__}")
    return value


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0"}:
            return False
    raise ConfigError(f"expected a boolean in {CONFIG_FILENAME}, got {value!r}")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigError(f"expected a list in {CONFIG_FILENAME}, got {value!r}")
    return [str(item).strip() for item in items if str(item).strip()]


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_HELP_CATEGORY",
    "HelpOptions",
    "ProjectConfig",
    "load_config",
]
