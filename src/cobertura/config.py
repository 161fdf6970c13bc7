"""Configuration parsing from ``.cobertura.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".cobertura.yml"

DEFAULT_CHUNK_SIZE = 64 * 1024

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_MAX_PERCENTAGE = 100.0


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ParserConfig:
    """Report reading configuration."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes read from a report file per tokenizer feed."""


@dataclass
class CheckConfig:
    """Thresholds used by ``cobertura check``."""

    line_rate_tolerance: float = 0.001
    """Allowed difference between declared and recomputed line rate (0.0 to 1.0)."""

    line_threshold: float = 0.0
    """Minimum acceptable line coverage percentage (0 disables the check)."""

    branch_threshold: float = 0.0
    """Minimum acceptable branch coverage percentage (0 disables the check)."""


@dataclass
class CoberturaConfig:
    """Complete configuration for a project."""

    root: str
    """Directory the configuration was loaded from."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    check: CheckConfig = field(default_factory=CheckConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """The resolved YAML mapping, kept for display."""


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        logger.warning("Ignoring non-mapping %r section in %s", name, CONFIG_FILE_NAME)
        return {}
    return section


def _parse_parser_config(raw: dict[str, Any]) -> ParserConfig:
    """Parse the ``parser`` section, falling back to ``COBERTURA_CHUNK_SIZE``.

    Raises:
        ValueError: ``chunk_size`` is not an integer.
    """
    parser_raw = _section(raw, "parser")
    env_chunk_size = os.environ.get("COBERTURA_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)
    value = parser_raw.get("chunk_size", env_chunk_size)
    try:
        chunk_size = int(value)
    except (TypeError, ValueError) as e:
        msg = f"parser.chunk_size must be an integer (got: {value!r})"
        raise ValueError(msg) from e
    return ParserConfig(chunk_size=chunk_size)


def _parse_check_config(raw: dict[str, Any]) -> CheckConfig:
    """Parse the ``check`` section."""
    check_raw = _section(raw, "check")
    return CheckConfig(
        line_rate_tolerance=float(check_raw.get("line_rate_tolerance", 0.001)),
        line_threshold=float(check_raw.get("line_threshold", 0.0)),
        branch_threshold=float(check_raw.get("branch_threshold", 0.0)),
    )


def load_config(root: str | Path) -> CoberturaConfig:
    """Load ``.cobertura.yml`` from *root*.

    Falls back to defaults and environment variables when the file is
    missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE_NAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        else:
            logger.warning("%s does not contain a mapping; using defaults", config_file)

    return CoberturaConfig(
        root=str(root_path),
        parser=_parse_parser_config(raw),
        check=_parse_check_config(raw),
        raw=raw,
    )


def _validate_parser_config(parser: ParserConfig) -> list[str]:
    if parser.chunk_size < 1:
        return [f"parser.chunk_size must be positive (got: {parser.chunk_size})"]
    return []


def _validate_check_config(check: CheckConfig) -> list[str]:
    errors: list[str] = []

    if not 0.0 <= check.line_rate_tolerance <= 1.0:
        errors.append(
            f"check.line_rate_tolerance must be between 0 and 1 "
            f"(got: {check.line_rate_tolerance})"
        )

    if not 0.0 <= check.line_threshold <= _MAX_PERCENTAGE:
        errors.append(
            f"check.line_threshold must be between 0 and 100 (got: {check.line_threshold})"
        )

    if not 0.0 <= check.branch_threshold <= _MAX_PERCENTAGE:
        errors.append(
            f"check.branch_threshold must be between 0 and 100 (got: {check.branch_threshold})"
        )

    return errors


def validate_config(config: CoberturaConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_parser_config(config.parser))
    errors.extend(_validate_check_config(config.check))
    return errors
