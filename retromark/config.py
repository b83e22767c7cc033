"""Configuration loading for RetroMark.

This module resolves the site configuration used by every pipeline stage.
It starts from a complete set of defaults, deep-merges the user's
``retro.yml`` onto them, applies environment-variable overrides and
validates the enumerated fields.

Key functions:
- resolve_config: Build a SiteConfig from an optional file and the environment.
- deep_merge: Right-biased recursive merge of two mappings.
- validate_config: Replace invalid values and mistyped sections with defaults.
- validate_nav_items: Strict navigation check used during page assembly.
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "retro.yml"

VALID_THEMES = ("academic", "novel", "guidebook", "terminal", "vaporwave")
VALID_TOC_POSITIONS = ("top", "bottom", "sticky-left", "sticky-right", "none")
VALID_MATH_ENGINES = ("katex", "mathjax", "none")

ENV_OVERRIDES = {
    "RM_THEME": "theme",
    "RM_TITLE": "title",
    "RM_BASE_URL": "base_url",
    "RM_OUTPUT_DIR": "output",
    "RM_MATH_ENGINE": "math.engine",
    "RM_TOC_POSITION": "toc.position",
}

DEFAULT_CONFIG: dict[str, Any] = {
    # Site metadata
    "title": "RetroMark Site",
    "description": "A retro-styled static site",
    "base_url": "/",
    "author": "Author Name",
    "language": "en-US",
    # Theme
    "theme": "academic",
    "preset": None,
    "theme_variables": {},
    "layout": {
        "type": "sidebar-left",
        "header": {
            "position": "fixed",
            "style": "minimal",
            "show_title": True,
            "show_logo": False,
            "show_nav": True,
        },
        "sidebar": {"width": "280px", "position": "left"},
        "footer": {"enabled": True, "content": "Built with RetroMark • © {year}"},
    },
    "toc": {
        "enabled": True,
        "position": "sticky-left",
        "depth": 3,
        "style": "classic",
        "numbering": False,
        "indent_guides": True,
    },
    "nav": [{"title": "Home", "path": "/"}],
    "typography": {
        "font": {
            "body": "Garamond, serif",
            "headings": "Times New Roman, serif",
            "code": "Courier, monospace",
        },
        "sizes": {"base": "18px", "h1": "2.5rem", "h2": "2rem", "h3": "1.75rem"},
        "line_height": 1.6,
        "max_width": "800px",
        "paragraph_indent": "0",
        "paragraph_spacing": "1rem",
    },
    "colors": {
        "primary": "#8b0000",
        "secondary": "#556b2f",
        "background": "#f9f3e9",
        "text": "#333333",
        "links": "#0066cc",
        "links_hover": "#8b0000",
        "header_bg": "#ffffff",
        "sidebar_bg": "#f5f2e9",
        "border": "#dcd6c2",
        "code_bg": "#f8f5e9",
        "blockquote_border": "#8b0000",
    },
    "math": {
        "engine": "katex",
        "delimiters": {"inline": ["$", "$"], "display": ["$$", "$$"]},
        "copy_tex": True,
    },
    "features": {
        "syntax_highlighting": True,
        "header_anchors": True,
        "print_mode": True,
        "dark_mode": False,
        "progress_bar": False,
        "footnotes": True,
        "hyphenation": True,
    },
    "custom": {"css": [], "js": [], "fonts": [], "favicon": None},
    "processing": {
        "smart_quotes": True,
        "typographer": True,
        "linkify": True,
        "emoji": True,
        "preserve_line_breaks": False,
    },
    "output": "dist",
    "exclude": ["drafts/", "*.tmp.md"],
}


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


class SiteConfig(Mapping):
    """Resolved, read-only site configuration.

    Nested mappings are exposed as read-only proxies and lists as tuples,
    so a SiteConfig can be shared between concurrent document builds.
    Jinja templates can use attribute syntax (``config.toc.depth``).

    Attributes:
        warnings: Messages recorded while resolving the configuration.
        source: Path of the configuration file that was loaded, if any.
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        warnings: tuple[str, ...] = (),
        source: Path | None = None,
    ):
        self._data = _freeze(data)
        self.warnings = tuple(warnings)
        self.source = source

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SiteConfig(source={self.source!r}, theme={self._data.get('theme')!r})"

    def get_path(self, dotted: str, default: Any = None) -> Any:
        """Look up a value by dotted path, e.g. ``"toc.depth"``.

        Args:
            dotted: Dot-separated key path.
            default: Value returned when any segment is missing.

        Returns:
            The configured value or ``default``.
        """
        current: Any = self._data
        for part in dotted.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the configuration."""
        return _thaw(self._data)


def deep_merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``source`` onto ``target`` without mutating either.

    Mappings present on both sides are merged recursively. Any other value
    from ``source`` (lists included) replaces the target value outright.

    Examples:
        >>> deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
        {'a': {'x': 1, 'y': 3}}

        >>> deep_merge({"a": [1, 2]}, {"a": [3]})
        {'a': [3]}
    """
    merged = copy.deepcopy(dict(target))
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def set_dotted(config: dict[str, Any], dotted: str, value: Any) -> None:
    """Set a value by dotted path, creating intermediate mappings."""
    parts = dotted.split(".")
    current = config
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def apply_env_overrides(
    config: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Apply the ``RM_*`` environment overrides in place.

    Args:
        config: Mutable configuration dictionary.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        The same dictionary, for chaining.
    """
    env = os.environ if environ is None else environ
    for variable, dotted in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            logger.debug("Applying %s override to %s", variable, dotted)
            set_dotted(config, dotted, value)
    return config


def repair_section_types(
    config: dict[str, Any],
    defaults: Mapping[str, Any],
    warn: Callable[[str], None],
    prefix: str = "",
) -> None:
    """Replace sections whose type differs from the default's type.

    Only mapping and list defaults are checked, recursively. A missing
    section is restored silently; a section of the wrong type is restored
    with a warning. The navigation list has its own checks.

    Args:
        config: Mutable configuration (or sub-section) to repair in place.
        defaults: Matching section of DEFAULT_CONFIG.
        warn: Callback recording a warning message.
        prefix: Dotted path of ``config``, used in messages.
    """
    for key, default in defaults.items():
        if not isinstance(default, (dict, list)) or (not prefix and key == "nav"):
            continue
        name = f"{prefix}{key}"
        if key not in config:
            config[key] = copy.deepcopy(default)
            continue
        value = config[key]
        if not isinstance(value, type(default)):
            kind = "mapping" if isinstance(default, dict) else "list"
            warn(f"Invalid {name}: expected a {kind}, got {value!r}. Using defaults.")
            config[key] = copy.deepcopy(default)
        elif isinstance(default, dict):
            repair_section_types(value, default, warn, f"{name}.")


def validate_config(config: dict[str, Any]) -> list[str]:
    """Replace invalid values with their defaults in place.

    Args:
        config: Mutable, fully merged configuration dictionary.

    Returns:
        Warning messages, one per substituted value.
    """
    warnings: list[str] = []

    def warn(message: str) -> None:
        logger.warning(message)
        warnings.append(message)

    if config.get("theme") not in VALID_THEMES:
        default = DEFAULT_CONFIG["theme"]
        warn(f"Invalid theme: {config.get('theme')!r}. Using default ({default}).")
        config["theme"] = default

    repair_section_types(config, DEFAULT_CONFIG, warn)

    toc = config["toc"]
    if toc.get("position") not in VALID_TOC_POSITIONS:
        default = DEFAULT_CONFIG["toc"]["position"]
        warn(
            f"Invalid TOC position: {toc.get('position')!r}. Using default ({default})."
        )
        toc["position"] = default
    depth = toc.get("depth")
    if isinstance(depth, bool) or not isinstance(depth, int) or not 1 <= depth <= 6:
        default = DEFAULT_CONFIG["toc"]["depth"]
        warn(f"Invalid TOC depth: {depth!r}. Using default ({default}).")
        toc["depth"] = default

    math = config["math"]
    if math.get("engine") not in VALID_MATH_ENGINES:
        default = DEFAULT_CONFIG["math"]["engine"]
        warn(f"Invalid math engine: {math.get('engine')!r}. Using default ({default}).")
        math["engine"] = default

    nav = config.get("nav")
    if isinstance(nav, list):
        checked = []
        for item in nav:
            if not isinstance(item, dict):
                warn(f"Ignoring navigation item that is not a mapping: {item!r}")
                continue
            if not item.get("path"):
                warn(f"Navigation item {item.get('title')!r} missing path. Using '#'.")
                item = {**item, "path": "#"}
            checked.append(item)
        config["nav"] = checked
    else:
        warn("Navigation must be a list. Using defaults.")
        config["nav"] = copy.deepcopy(DEFAULT_CONFIG["nav"])

    if not config.get("output"):
        config["output"] = DEFAULT_CONFIG["output"]
    return warnings


def validate_nav_items(items: Any) -> list[dict[str, Any]]:
    """Return only navigation items carrying both a title and a path.

    Children are validated recursively. Invalid items are dropped with a
    warning.

    Args:
        items: Navigation entries from the configuration.

    Returns:
        A new list of valid navigation dictionaries.
    """
    if not isinstance(items, (list, tuple)):
        return []
    valid: list[dict[str, Any]] = []
    for item in items:
        if not isinstance(item, Mapping):
            logger.warning("Skipping invalid navigation item: %r", item)
            continue
        title, path = item.get("title"), item.get("path")
        if not (isinstance(title, str) and title.strip()) or not (
            isinstance(path, str) and path.strip()
        ):
            logger.warning("Skipping invalid navigation item: %r", dict(item))
            continue
        entry = dict(item)
        if item.get("children"):
            entry["children"] = validate_nav_items(item["children"])
        valid.append(entry)
    return valid


def find_config_file(project_root: Path, name: str = CONFIG_FILENAME) -> Path | None:
    """Locate the configuration file in the project root or its config/ dir."""
    for candidate in (project_root / name, project_root / "config" / name):
        if candidate.is_file():
            return candidate
    return None


def _read_user_config(path: Path) -> dict[str, Any] | None:
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Error loading config %s: %s", path, exc)
        return None
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Config %s is not a mapping. Using defaults.", path)
        return None
    return loaded


def resolve_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
    project_root: Path | None = None,
) -> SiteConfig:
    """Resolve the site configuration.

    Never raises for a missing or malformed configuration file; problems
    are logged and the defaults are used instead.

    Args:
        path: Explicit configuration file. When omitted, ``retro.yml`` is
            searched for in ``project_root`` and ``project_root/config``.
        environ: Environment used for ``RM_*`` overrides.
        project_root: Directory searched when ``path`` is omitted
            (defaults to the current working directory).

    Returns:
        The resolved, read-only SiteConfig.
    """
    root = project_root or Path.cwd()
    if path is not None:
        source: Path | None = Path(path)
        if not source.is_absolute() and not source.exists():
            source = root / source
        if not source.is_file():
            logger.warning("Config file not found at %s. Using defaults.", path)
            source = None
    else:
        source = find_config_file(root)
        if source is None:
            logger.info("No %s found. Using defaults.", CONFIG_FILENAME)

    user = _read_user_config(source) if source is not None else None
    merged = deep_merge(DEFAULT_CONFIG, user or {})
    apply_env_overrides(merged, environ)
    warnings = validate_config(merged)
    if source is not None and user is not None:
        logger.info("Configuration loaded from %s", source)
    return SiteConfig(merged, warnings=tuple(warnings), source=source)


def default_config_yaml() -> str:
    """Return the default configuration as a YAML document."""
    return yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True)
