"""Shared test fixtures for the linkcontext test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from linkcontext.cache import Cache
from linkcontext.fetcher import Fetcher
from linkcontext.models.document import DocumentMetadata, ExtractedDocument, LinkType

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture()
async def cache() -> AsyncIterator[Cache]:
    """Cache backed by a fresh in-memory SQLite database."""
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db)
        await cache.init_db()
        yield cache


@pytest.fixture()
async def fetcher() -> AsyncIterator[Fetcher]:
    """Fetcher over a plain httpx client; pair with respx to mock responses."""
    async with httpx.AsyncClient(follow_redirects=False) as client:
        yield Fetcher(client)


@pytest.fixture()
def sample_document() -> ExtractedDocument:
    return ExtractedDocument(
        url="https://example.com/post",
        type=LinkType.WEBSITE,
        title="Example Post",
        description="A short example",
        body_text="Body paragraph one.\n\nBody paragraph two.",
        metadata=DocumentMetadata(author="Jane", language="en"),
    )
