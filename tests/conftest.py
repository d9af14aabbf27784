"""Shared test fixtures for the Clarity test suite.

Provides the sample conflict snapshot, a workspace wired with a fixed clock
and an instant verification, and an HTTP client bound to the app.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from clarity.config import SAMPLE_CONFLICTS_PATH
from clarity.models.conflict import Conflict
from clarity.orchestrator.workspace import Workspace
from clarity.registry.loader import load_conflicts
from clarity.registry.registry import ConflictRegistry
from tests.fixtures.factories import FIXED_NOW, instant_verification


@pytest.fixture
def sample_conflicts() -> list[Conflict]:
    return load_conflicts(SAMPLE_CONFLICTS_PATH)


@pytest.fixture
def workspace(sample_conflicts: list[Conflict]) -> Workspace:
    ws = Workspace(
        ConflictRegistry(),
        clock=lambda: FIXED_NOW,
        verification_factory=instant_verification,
    )
    ws.load(sample_conflicts)
    return ws


@pytest.fixture
async def client(
    workspace: Workspace, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the module workspace swapped out."""
    from clarity import main

    monkeypatch.setattr(main, "workspace", workspace)
    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
