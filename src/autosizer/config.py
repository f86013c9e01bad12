import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from tenacity import stop_after_attempt, stop_after_delay, wait_exponential

from .core import (
    MACHINE_TYPE_RECOMMENDER,
    POLL_MAX_ATTEMPTS,
    POLL_MAX_WAIT,
    POLL_MIN_WAIT,
    POLL_TIMEOUT_SECONDS,
)
from .exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    project_id: str | None = Field(
        default=None, description="Falls back to google.auth.default() when unset"
    )
    recommender_id: str = MACHINE_TYPE_RECOMMENDER
    poll_timeout_seconds: float = Field(default=POLL_TIMEOUT_SECONDS, gt=0)
    poll_max_attempts: int = Field(default=POLL_MAX_ATTEMPTS, ge=1)
    poll_min_wait: float = Field(default=POLL_MIN_WAIT, ge=0)
    poll_max_wait: float = Field(default=POLL_MAX_WAIT, ge=0)
    mark_recommendations: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Builds settings from environment variables.
        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        project_id = env.get("GOOGLE_CLOUD_PROJECT") or env.get("GCP_PROJECT")
        if project_id:
            values["project_id"] = project_id

        mapping = {
            "AUTOSIZER_RECOMMENDER_ID": "recommender_id",
            "AUTOSIZER_POLL_TIMEOUT": "poll_timeout_seconds",
            "AUTOSIZER_POLL_MAX_ATTEMPTS": "poll_max_attempts",
            "AUTOSIZER_POLL_MIN_WAIT": "poll_min_wait",
            "AUTOSIZER_POLL_MAX_WAIT": "poll_max_wait",
            "AUTOSIZER_LOG_LEVEL": "log_level",
        }
        for var, field in mapping.items():
            if env.get(var):
                values[field] = env[var]

        if env.get("AUTOSIZER_MARK_RECOMMENDATIONS"):
            values["mark_recommendations"] = (
                env["AUTOSIZER_MARK_RECOMMENDATIONS"].strip().lower() in _TRUE_VALUES
            )

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid autosizer settings: {e}") from e

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)  # type: ignore[no-any-return]

    def poll_config(self) -> dict[str, Any]:
        """tenacity stop/wait kwargs for operation polling."""
        return {
            "stop": stop_after_delay(self.poll_timeout_seconds)
            | stop_after_attempt(self.poll_max_attempts),
            "wait": wait_exponential(
                multiplier=1, min=self.poll_min_wait, max=self.poll_max_wait
            ),
        }
