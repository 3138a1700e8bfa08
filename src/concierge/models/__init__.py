"""Concierge configuration models - re-exports the public settings classes."""

from concierge.models.config import (
    ConciergeSettings,
    RecordingConfig,
    SchedulingConfig,
    find_project_root,
    load_settings,
)

__all__ = [
    "ConciergeSettings",
    "RecordingConfig",
    "SchedulingConfig",
    "find_project_root",
    "load_settings",
]
