"""Project configuration model for the concierge.

Captures concierge.yaml fields with sensible defaults for provider
selection, round budget, storage location, scheduling policy and
trace recording.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

CONFIG_FILENAME = "concierge.yaml"

# Environment overrides for provider selection (read once at load time).
PROVIDER_ENV_VAR = "CONCIERGE_LLM_PROVIDER"
MODEL_ENV_VAR = "CONCIERGE_LLM_MODEL"


class SchedulingConfig(BaseModel):
    """Scheduling policy applied to appointment booking.

    Times are 24-hour HH:MM strings; open_days uses Python weekday
    numbers (Monday=0).
    """

    model_config = {"extra": "forbid"}

    business_hours_start: str = Field(default="09:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    business_hours_end: str = Field(default="17:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    open_days: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    min_advance_days: int = Field(default=1, ge=0)
    max_advance_days: int = Field(default=30, ge=1)
    services: list[str] = Field(default_factory=lambda: ["tutoring", "advising"])

    @model_validator(mode="after")
    def _check_windows(self) -> "SchedulingConfig":
        if self.business_hours_start >= self.business_hours_end:
            raise ValueError("business_hours_start must be before business_hours_end")
        if self.min_advance_days > self.max_advance_days:
            raise ValueError("min_advance_days must not exceed max_advance_days")
        return self


class RecordingConfig(BaseModel):
    """Configuration for trace recording behavior.

    Custom redaction patterns extend the built-in secret patterns
    applied to every message and tool payload before it is stored.
    """

    model_config = {"extra": "forbid"}

    custom_redaction_patterns: list[str] = Field(default_factory=list)


class ConciergeSettings(BaseModel):
    """Project-level configuration loaded from concierge.yaml."""

    model_config = {"extra": "forbid"}

    provider: str = "auto"
    model: str | None = None
    max_rounds: int = Field(default=3, ge=1, le=20)
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0.0)
    storage_dir: str = ".concierge"
    seed_file: str | None = None
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    recording: RecordingConfig = Field(default_factory=RecordingConfig)


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for concierge.yaml or .concierge/.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the directory containing concierge.yaml or .concierge/,
        or cwd if neither is found.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists() or (current / ".concierge").exists():
            return current
        current = current.parent
    return Path.cwd()


def load_settings(project_root: Path | None = None) -> ConciergeSettings:
    """Load ConciergeSettings from concierge.yaml, then apply env overrides.

    Args:
        project_root: Directory holding concierge.yaml. If None,
            uses find_project_root() to locate it.

    Returns:
        Validated ConciergeSettings instance (defaults if no file).
    """
    if project_root is None:
        project_root = find_project_root()
    config_path = project_root / CONFIG_FILENAME

    settings = ConciergeSettings()
    if config_path.exists():
        import yaml

        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if raw is not None:
            settings = ConciergeSettings.model_validate(raw)

    overrides: dict[str, str] = {}
    if os.environ.get(PROVIDER_ENV_VAR):
        overrides["provider"] = os.environ[PROVIDER_ENV_VAR].strip()
    if os.environ.get(MODEL_ENV_VAR):
        overrides["model"] = os.environ[MODEL_ENV_VAR].strip()
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings
