"""Protocol interfaces for swappable components.

The orchestrator, strategies and AppState reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight in-memory implementations
- Future backends (e.g. a hosted key/value store) to be swapped without
  changing pipeline code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping

    from linkcontext.models.document import ExtractedDocument


class CacheProtocol(Protocol):
    """Interface for the extraction cache backend."""

    async def get_document(self, url: str) -> ExtractedDocument | None: ...

    async def put_document(
        self,
        document: ExtractedDocument,
        *,
        requester_id: str,
        ttl_hours: int,
    ) -> None: ...

    async def cleanup_if_due(self, interval_hours: int) -> None: ...

    async def cleanup_expired(self) -> None: ...


class FetcherProtocol(Protocol):
    """Interface for the HTTP page fetcher."""

    async def fetch(
        self,
        url: str,
        *,
        timeout: float,
        follow_redirects: bool = True,
        headers: Mapping[str, str] | None = None,
    ) -> str: ...
