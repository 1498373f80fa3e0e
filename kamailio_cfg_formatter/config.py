"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
import tomllib

from .constants import DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_LINE_LENGTH

TOOL_NAME = "kamailio-cfg-formatter"
STRATEGIES = ("rules", "braces")

# Files looked up in each directory, with the tables they may hold, in priority order
CONFIG_SOURCES: tuple[tuple[str, tuple[tuple[str, ...], ...]], ...] = (
    ("pyproject.toml", (("tool", TOOL_NAME),)),
    (f".{TOOL_NAME}.toml", ((TOOL_NAME,), ("tool", TOOL_NAME))),
)


@dataclass
class FormatterConfig:
    """Settings used when formatting configuration files from the command line.

    The indentation unit is fixed at two spaces and is not configurable.

    Attributes:
        strategy: Formatting strategy, ``"rules"`` or ``"braces"``.
        validate: Whether to check braces and ``#!ifdef`` blocks before formatting.
        max_file_size: Largest file, in bytes, that will be read.
        max_line_length: Longest line, in characters, that will be read.

    Examples:
        FormatterConfig(strategy="braces", validate=True)
    """

    strategy: str = "rules"
    validate: bool = False

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH


class ConfigError(ValueError):
    """Raised for malformed configuration tables or values.

    Examples:
        raise ConfigError("`strategy` must be one of: rules, braces")
    """


def load_config(search_path: Path) -> FormatterConfig:
    """Find and load the configuration that applies to `search_path`.

    Each directory from `search_path` up to the filesystem root is checked for
    a ``[tool.kamailio-cfg-formatter]`` table in `pyproject.toml`, then for a
    ``[kamailio-cfg-formatter]`` or ``[tool.kamailio-cfg-formatter]`` table in
    `.kamailio-cfg-formatter.toml`. The first table found wins, even an empty
    one. Files that cannot be read or are not valid TOML are ignored.

    Args:
        search_path: Directory the lookup starts from, usually the one holding
            the configuration file being formatted.

    Returns:
        FormatterConfig: The loaded settings, or the defaults when no table is found.

    Raises:
        ConfigError: If the table found is not a mapping or holds unknown keys.

    Examples:
        load_config(Path("/etc/kamailio"))
    """
    for directory in (search_path.resolve(), *search_path.resolve().parents):
        for filename, table_paths in CONFIG_SOURCES:
            config = _load_from_file(directory / filename, table_paths)
            if config is not None:
                return config
    return FormatterConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: tuple[tuple[str, ...], ...]
) -> FormatterConfig | None:
    if not config_file.is_file():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        table = _extract_table(data, table_path)
        if table is not _MISSING:
            return _build_config_from_table(table, config_file, ".".join(table_path))
    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    for key in table_path:
        if not isinstance(data, dict) or key not in data:
            return _MISSING
        data = data[key]
    return data


def _build_config_from_table(table: object, config_file: Path, table_name: str) -> FormatterConfig:
    if not isinstance(table, dict):
        raise ConfigError(f"Invalid `[{table_name}]` settings in {config_file}")

    known = {field.name for field in fields(FormatterConfig)}
    values = {key.replace("-", "_"): value for key, value in table.items()}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(
            f"Invalid `[{table_name}]` settings in {config_file}: "
            f"unknown keys {', '.join(unknown)}"
        )
    return FormatterConfig(**values)


def validate_config(config: FormatterConfig) -> None:
    """Check that every field of `config` holds a usable value.

    Raises:
        ConfigError: If the strategy is unknown, `validate` is not a boolean,
            or a limit is not a positive integer.
    """
    if config.strategy not in STRATEGIES:
        raise ConfigError(f"`strategy` must be one of: {', '.join(STRATEGIES)}")
    if not isinstance(config.validate, bool):
        raise ConfigError("`validate` must be a boolean")

    for name in ("max_file_size", "max_line_length"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{name}` must be an integer")
        if value <= 0:
            raise ConfigError(f"`{name}` must be a positive integer")


def apply_overrides(config: FormatterConfig, **overrides: object) -> FormatterConfig:
    """Return `config` with the given fields replaced.

    Overrides set to None are ignored, so unset command-line options keep the
    configured value. `config` itself is returned when nothing changes.

    Examples:
        apply_overrides(config, strategy="braces", validate=None)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> FormatterConfig:
    """Load the configuration for `search_path`, apply overrides and validate it.

    Raises:
        ConfigError: If loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), strategy="braces")
    """
    config = apply_overrides(load_config(search_path), **overrides)
    validate_config(config)
    return config
