from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from linkcontext.models.document import ExtractedDocument


class DocumentCacheEntry(BaseModel):
    """Cached extraction result for a single URL."""

    url_hash: str  # SHA-256 of url (primary key)
    url: str
    payload: ExtractedDocument
    fetched_at: datetime
    expires_at: datetime
    stale: bool = False
