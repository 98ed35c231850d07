"""Configuration system for floorscan.

This module implements the configuration schema using Pydantic for
validation, with optional YAML configuration files, environment variable
resolution, and fail-fast validation with actionable error messages.
Command-line flags are layered on top of file values as overrides.
"""

import os
import re
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Final, Self

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from floorscan.core.depth_filter import DepthMode, ItemType
from floorscan.core.errors import InvalidUnitError
from floorscan.core.size_resolver import SizeMode
from floorscan.core.units import UnitFamily, UnitSelection, resolve_unit

# Matches ${VARIABLE_NAME} references in string values
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")


class SortOrder(StrEnum):
    """Result ordering by size."""

    NONE = "none"
    ASCENDING = "asc"
    DESCENDING = "desc"


class ConcurrencyMode(StrEnum):
    """How workers are allocated to batches."""

    ADAPTIVE = "adaptive"
    FIXED = "fixed"
    SEQUENTIAL = "sequential"


class ExportFormat(StrEnum):
    """Serialization formats for exported results."""

    CSV = "csv"
    JSON = "json"
    TEXT = "text"


class ScanSettings(BaseModel):
    """Selection, filtering, and display settings for a scan."""

    floor: Annotated[int, Field(ge=1, description="Target depth relative to the base path")] = 1
    item_type: Annotated[ItemType, Field(description="Entry kinds to select")] = ItemType.DIRECTORY
    depth_mode: Annotated[
        DepthMode,
        Field(description="Floor semantics: 'at-most' (depth <= floor) or 'exact'"),
    ] = DepthMode.AT_MOST
    shallow: Annotated[bool, Field(description="Only inspect immediate children during discovery")] = False
    min_size_mb: Annotated[
        float,
        Field(ge=0, description="Minimum size in MB (1 MB = 1,000,000 bytes) regardless of display unit"),
    ] = 0.0
    unit: Annotated[str, Field(description="Display unit token, e.g. MB, GiB, auto, auto-binary")] = "auto"
    unit_family: Annotated[
        UnitFamily | None,
        Field(description="Explicit unit family; must agree with the unit token"),
    ] = None
    sort: Annotated[SortOrder, Field(description="Result ordering by size")] = SortOrder.NONE
    size_mode: Annotated[SizeMode, Field(description="Apparent size or allocated disk usage")] = SizeMode.APPARENT

    @model_validator(mode="after")
    def validate_unit(self) -> Self:
        """Validate that the unit token resolves within the requested family.

        Raises:
            ValueError: If the unit is unknown or belongs to another family
        """
        try:
            _ = resolve_unit(self.unit, self.unit_family)
        except InvalidUnitError as e:
            raise ValueError(str(e)) from e
        return self

    def unit_selection(self) -> UnitSelection:
        return resolve_unit(self.unit, self.unit_family)


class ConcurrencySettings(BaseModel):
    """Worker pool sizing and adaptive controller settings."""

    mode: Annotated[ConcurrencyMode, Field(description="Worker allocation strategy")] = ConcurrencyMode.ADAPTIVE
    threads: Annotated[int, Field(ge=1, description="Pool size for fixed mode")] = 4
    min_threads: Annotated[int, Field(ge=1, description="Lower worker bound for adaptive mode")] = 1
    max_threads: Annotated[int, Field(ge=1, description="Upper worker bound for adaptive mode")] = 8
    queue_high: Annotated[
        float,
        Field(ge=0, description="Disk queue depth above which workers are removed"),
    ] = 2.0
    queue_low: Annotated[
        float,
        Field(ge=0, description="Disk queue depth below which workers are added"),
    ] = 1.0
    batch_size: Annotated[
        int | None,
        Field(ge=1, description="Targets per batch (default: 2 x max_threads or the fixed pool size)"),
    ] = None

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        """Validate thread bounds and hysteresis thresholds.

        Raises:
            ValueError: If max_threads < min_threads or queue_low > queue_high
        """
        if self.max_threads < self.min_threads:
            msg = f"max_threads ({self.max_threads}) must be >= min_threads ({self.min_threads})"
            raise ValueError(msg)
        if self.queue_low > self.queue_high:
            msg = f"queue_low ({self.queue_low}) must be <= queue_high ({self.queue_high})"
            raise ValueError(msg)
        return self

    def effective_batch_size(self) -> int:
        if self.batch_size is not None:
            return self.batch_size
        if self.mode is ConcurrencyMode.ADAPTIVE:
            return self.max_threads * 2
        return self.threads

    def pool_size(self) -> int:
        if self.mode is ConcurrencyMode.ADAPTIVE:
            return self.max_threads
        if self.mode is ConcurrencyMode.FIXED:
            return self.threads
        return 1


class OutputSettings(BaseModel):
    """Result export settings."""

    path: Annotated[Path | None, Field(description="Export file; results are printed when unset")] = None
    format: Annotated[
        ExportFormat | None,
        Field(description="Export format; inferred from the file suffix when unset"),
    ] = None


class ApplicationSettings(BaseModel):
    """Application-level settings."""

    log_level: Annotated[
        str,
        Field(description="Logging level", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"),
    ] = "WARNING"
    log_file: Annotated[Path | None, Field(description="Optional log file")] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept log levels in any letter case."""
        return v.upper() if isinstance(v, str) else v


class MainConfig(BaseModel):
    """Top-level configuration container."""

    scan: Annotated[ScanSettings, Field(description="Selection and display settings")] = ScanSettings()
    concurrency: Annotated[ConcurrencySettings, Field(description="Worker pool settings")] = ConcurrencySettings()
    output: Annotated[OutputSettings, Field(description="Export settings")] = OutputSettings()
    application: Annotated[ApplicationSettings, Field(description="Application settings")] = ApplicationSettings()


class ConfigurationError(Exception):
    """Exception raised when configuration loading or validation fails."""


class EnvironmentVariableError(ConfigurationError):
    """Exception raised when a referenced environment variable is not set."""


def resolve_env_var(value: str) -> str:
    """Resolve ${VARIABLE_NAME} references in a string value.

    Raises:
        EnvironmentVariableError: If a referenced environment variable is missing

    Examples:
        >>> os.environ["SCAN_ROOT"] = "/srv"
        >>> resolve_env_var("${SCAN_ROOT}/exports")
        '/srv/exports'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            msg = f"Required environment variable '{var_name}' is not set."
            raise EnvironmentVariableError(msg)
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars(data: object) -> object:
    """Recursively resolve environment variables in YAML data."""
    if isinstance(data, str):
        return resolve_env_var(data)
    if isinstance(data, Mapping):
        return {key: resolve_env_vars(value) for key, value in data.items()}  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    return data


def merge_overrides(base: Mapping[str, object], overrides: Mapping[str, object]) -> dict[str, object]:
    """Deep-merge ``overrides`` into ``base``; None override values are ignored."""
    merged: dict[str, object] = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overrides(current, value)  # pyright: ignore[reportUnknownArgumentType]
        else:
            merged[key] = value
    return merged


def _format_validation_error(error: ValidationError, source: str) -> str:
    error_lines = ["Configuration validation failed:", ""]
    for item in error.errors():
        field_path = " → ".join(str(loc) for loc in item["loc"]) or "(root)"
        error_lines.append(f"  Field: {field_path}")
        error_lines.append(f"  Error: {item['msg']}")
        error_lines.append("")
    error_lines.append(f"Source: {source}")
    return "\n".join(error_lines)


def build_config(
    data: Mapping[str, object] | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    source: str = "command line",
) -> MainConfig:
    """Validate raw configuration data with optional overrides applied.

    Raises:
        ConfigurationError: If the merged data fails validation
    """
    merged = merge_overrides(data or {}, overrides or {})
    try:
        return MainConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e, source)) from e


def load_yaml_config(config_path: Path) -> dict[str, object]:
    """Load a YAML configuration file and resolve environment variables.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or malformed
    """
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = f"Failed to parse YAML configuration file: {config_path}\nYAML parsing error: {e}"
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}"
        raise ConfigurationError(msg) from e

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML mapping at root level, got: {type(raw_data).__name__}"
        )
        raise ConfigurationError(msg)

    try:
        resolved = resolve_env_vars(raw_data)
    except EnvironmentVariableError as e:
        msg = f"Environment variable resolution failed in: {config_path}\n{e}"
        raise EnvironmentVariableError(msg) from e
    return resolved  # pyright: ignore[reportReturnType]  # YAML boundary


def load_main_config(
    config_path: Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
) -> MainConfig:
    """Load, merge, and validate the application configuration.

    Args:
        config_path: Optional YAML configuration file
        overrides: Nested mapping of values (typically CLI flags) that take
            precedence over the file; None values are ignored

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    data = load_yaml_config(config_path) if config_path is not None else {}
    source = str(config_path) if config_path is not None else "command line"
    return build_config(data, overrides=overrides, source=source)
