"""
Runtime settings for the state migrator.

Settings are an immutable Pydantic model. They can be built directly or read
from ``STATEMIGRATOR_*`` environment variables; nothing is read from disk.
"""

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from statemigrator import LoggingConfigError, validate_log_level

ENV_PREFIX = "STATEMIGRATOR_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class MigratorSettings(BaseModel):
    """
    Behavioural switches for logging and migration reporting.

    Attributes:
        log_level: Console log level used by ``initialize_logging``
        colorize_logs: Colour console output
        emit_deprecation_warnings: Issue ``DeprecationWarning`` when a legacy
            record is upgraded
        track_changes: Record per-key changes in the migration report
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_level: str = Field(default="INFO", description="Console log level")
    colorize_logs: bool = Field(default=True, description="Colour console output")
    emit_deprecation_warnings: bool = Field(
        default=True,
        description="Warn when records written under a legacy schema are upgraded",
    )
    track_changes: bool = Field(
        default=True,
        description="Record added/removed/modified keys in migration reports",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        try:
            return validate_log_level(value)
        except LoggingConfigError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MigratorSettings":
        """
        Build settings from ``STATEMIGRATOR_*`` variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ValueError: If a variable holds an unusable value
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if f"{ENV_PREFIX}LOG_LEVEL" in environ:
            values["log_level"] = environ[f"{ENV_PREFIX}LOG_LEVEL"]

        for field_name, env_suffix in (
            ("colorize_logs", "COLORIZE_LOGS"),
            ("emit_deprecation_warnings", "DEPRECATION_WARNINGS"),
            ("track_changes", "TRACK_CHANGES"),
        ):
            raw = environ.get(f"{ENV_PREFIX}{env_suffix}")
            if raw is not None:
                values[field_name] = _parse_bool(f"{ENV_PREFIX}{env_suffix}", raw)

        return cls(**values)


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


__all__ = ["ENV_PREFIX", "MigratorSettings"]
