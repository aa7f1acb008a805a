"""Analysis thresholds and their loading from .boxdiff.toml and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".boxdiff.toml"
ENV_PREFIX = "BOXDIFF_"
DEFAULT_MAX_CONTENT_BYTES = 256 * 1024


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


@dataclass(frozen=True)
class AnalysisConfig:
    """Immutable set of tunable thresholds used across the analysis.

    Any field can be overridden in ``.boxdiff.toml`` under ``[analysis]``
    or through a ``BOXDIFF_<FIELD>`` environment variable.
    """

    # Conflict severity for modified files: > low -> low, > high -> medium.
    low_conflict_similarity: float = 0.8
    high_conflict_similarity: float = 0.5
    # Similarity below which a modified file is a major rewrite.
    major_change_similarity: float = 0.5
    # Similarity below which a modification counts as breaking.
    breaking_similarity: float = 0.3
    # More changed files than this always requires review.
    review_file_threshold: int = 10
    # Absolute size change (bytes) flagged as "Large size change".
    large_size_change: int = 10_000
    # Similarity above which a modified file is safe to auto-apply.
    safe_similarity: float = 0.9
    strict_safe_similarity: float = 0.95
    context_lines: int = 3
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES


def find_config_file(root: Path, override: str | None = None) -> Path | None:
    """Locate the config file. *override* takes precedence."""
    if override:
        path = Path(override)
        if not path.is_file():
            msg = f"Config file not found: {override}"
            raise ConfigError(msg)
        return path
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise ConfigError(msg) from exc


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Convert *value* to the type of the field's default."""
    expected = type(default)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        msg = f"Invalid value for {name!r}: {value!r}"
        raise ConfigError(msg)
    try:
        return expected(value)
    except ValueError as exc:
        msg = f"Invalid value for {name!r}: {value!r}"
        raise ConfigError(msg) from exc


def _build_config(data: dict[str, Any]) -> dict[str, Any]:
    """Keep known fields only, coerced to their declared types."""
    defaults = AnalysisConfig()
    values: dict[str, Any] = {}
    for f in dataclasses.fields(AnalysisConfig):
        if f.name in data:
            values[f.name] = _coerce(f.name, data[f.name], getattr(defaults, f.name))
    unknown = sorted(set(data) - {f.name for f in dataclasses.fields(AnalysisConfig)})
    if unknown:
        logger.warning("Ignoring unknown analysis settings: %s", ", ".join(unknown))
    return values


def _env_overrides() -> dict[str, Any]:
    """Collect ``BOXDIFF_<FIELD>`` environment variable overrides."""
    overrides: dict[str, Any] = {}
    for f in dataclasses.fields(AnalysisConfig):
        raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is not None:
            overrides[f.name] = raw
    return overrides


def load_config(root: Path, override: str | None = None) -> AnalysisConfig:
    """Load, validate, and return an AnalysisConfig.

    Precedence: environment variables > config file > defaults.
    """
    config_path = find_config_file(root, override)
    values: dict[str, Any] = {}

    if config_path is not None:
        raw = _parse_toml(config_path)
        section = raw.get("analysis", {})
        if not isinstance(section, dict):
            msg = f"[analysis] in {config_path} must be a table"
            raise ConfigError(msg)
        values.update(_build_config(section))
        logger.debug("Loaded analysis config from %s", config_path)

    values.update(_build_config(_env_overrides()))
    return AnalysisConfig(**values)
