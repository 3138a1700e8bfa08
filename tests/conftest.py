"""Shared fixtures: a campus pinned to a fixed Monday and its tool registry."""

from __future__ import annotations

from datetime import date

import pytest

from concierge.tools.campus import CampusDirectory
from concierge.tools.registry import ToolRegistry

MONDAY = date(2025, 3, 3)


@pytest.fixture
def today() -> date:
    return MONDAY


@pytest.fixture
def campus(today: date) -> CampusDirectory:
    return CampusDirectory.with_defaults(today=today)


@pytest.fixture
def tools(campus: CampusDirectory, today: date) -> ToolRegistry:
    return ToolRegistry(campus, today=lambda: today)
