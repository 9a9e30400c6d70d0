"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite, a real httpx client
(mocked per test with respx) and the default strategy set.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from linkcontext.cache import Cache
from linkcontext.config import Settings
from linkcontext.fetcher import Fetcher
from linkcontext.state import AppState
from linkcontext.strategies import StrategyDispatcher

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Overrides any local linkcontext.yaml by forcing stdio transport and
    pointing the cache database at an isolated tmp directory.
    """
    env = os.environ.copy()
    env["LINKCONTEXT__SERVER__TRANSPORT"] = "stdio"
    env["LINKCONTEXT__CACHE__DB_PATH"] = str(tmp_path / "cache.db")
    env["LINKCONTEXT__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
async def app_state() -> AsyncIterator[AppState]:
    """Full AppState wired for integration tests."""
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db)
        await cache.init_db()

        async with httpx.AsyncClient(follow_redirects=False) as client:
            settings = Settings()
            state = AppState(
                settings=settings,
                http_client=client,
                cache=cache,
                fetcher=Fetcher(client),
                strategies=StrategyDispatcher.from_settings(settings.fetcher),
            )
            yield state
