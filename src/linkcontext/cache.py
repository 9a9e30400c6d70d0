"""SQLite extraction cache.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (the scraped document is still
returned). Infrastructure errors never cross the Cache class boundary, so
caching can never fail a scrape.

Two tables back the cache:

- ``document_cache``: one row per URL hash holding the full document and its
  expiry. Rows are replaced whole (``INSERT OR REPLACE``), never patched.
- ``scraped_documents``: every cached document by id, attributed to the
  requester that triggered the scrape.
"""

from __future__ import annotations

import hashlib
from contextlib import suppress
from datetime import UTC, datetime, timedelta

import aiosqlite
import structlog
from pydantic import ValidationError

from linkcontext.errors import ErrorCode
from linkcontext.models.cache import DocumentCacheEntry
from linkcontext.models.document import ExtractedDocument

log = structlog.get_logger()

DEFAULT_TTL_HOURS = 24

_CREATE_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS document_cache (
    url_hash   TEXT PRIMARY KEY,
    url        TEXT NOT NULL UNIQUE,
    payload    TEXT NOT NULL,
    fetched_at TEXT NOT NULL,
    expires_at TEXT NOT NULL
)
"""

_CREATE_DOCUMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS scraped_documents (
    id           TEXT PRIMARY KEY,
    url          TEXT NOT NULL,
    requester_id TEXT NOT NULL,
    type         TEXT NOT NULL,
    status       TEXT NOT NULL,
    payload      TEXT NOT NULL,
    fetched_at   TEXT NOT NULL
)
"""

_CREATE_CACHE_INDEX = (
    "CREATE INDEX IF NOT EXISTS idx_document_cache_expires ON document_cache(expires_at)"
)
_CREATE_DOCUMENTS_INDEX = (
    "CREATE INDEX IF NOT EXISTS idx_scraped_documents_requester "
    "ON scraped_documents(requester_id)"
)

_CREATE_METADATA_TABLE = """
CREATE TABLE IF NOT EXISTS server_metadata (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


def url_hash(url: str) -> str:
    """SHA-256 hex digest of the URL string, used as the cache key."""
    return hashlib.sha256(url.encode()).hexdigest()


class Cache:
    """SQLite-backed extraction cache implementing CacheProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_CACHE_TABLE)
        await self._db.execute(_CREATE_DOCUMENTS_TABLE)
        await self._db.execute(_CREATE_CACHE_INDEX)
        await self._db.execute(_CREATE_DOCUMENTS_INDEX)
        await self._db.execute(_CREATE_METADATA_TABLE)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Document cache
    # ------------------------------------------------------------------

    async def get_entry(self, url: str) -> DocumentCacheEntry | None:
        """Read the cache row for *url*, expired or not.

        Returns ``None`` on cache miss, read failure or an unreadable payload
        or timestamp.
        """
        key = url_hash(url)
        try:
            cursor = await self._db.execute(
                "SELECT url_hash, url, payload, fetched_at, expires_at "
                "FROM document_cache WHERE url_hash = ?",
                (key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            expires_at = datetime.fromisoformat(row[4])
            return DocumentCacheEntry(
                url_hash=row[0],
                url=row[1],
                payload=ExtractedDocument.model_validate_json(row[2]),
                fetched_at=datetime.fromisoformat(row[3]),
                expires_at=expires_at,
                stale=datetime.now(UTC) >= expires_at,
            )
        except aiosqlite.Error:
            log.warning("cache_read_error", key=f"document:{key}", exc_info=True)
            return None
        except (ValidationError, ValueError):
            log.warning("cache_payload_invalid", key=f"document:{key}", exc_info=True)
            return None

    async def get_document(self, url: str) -> ExtractedDocument | None:
        """Return the cached document for *url* if present and unexpired."""
        entry = await self.get_entry(url)
        if entry is None or entry.stale:
            return None
        return entry.payload

    async def put_document(
        self,
        document: ExtractedDocument,
        *,
        requester_id: str,
        ttl_hours: int = DEFAULT_TTL_HOURS,
    ) -> None:
        """Upsert *document* with ``expires_at = now + ttl_hours``. Non-fatal on failure."""
        key = url_hash(document.url)
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(hours=ttl_hours)
            payload = document.model_dump_json()
            await self._db.execute(
                "INSERT OR REPLACE INTO document_cache "
                "(url_hash, url, payload, fetched_at, expires_at) VALUES (?, ?, ?, ?, ?)",
                (key, document.url, payload, now.isoformat(), expires_at.isoformat()),
            )
            await self._db.execute(
                "INSERT OR REPLACE INTO scraped_documents "
                "(id, url, requester_id, type, status, payload, fetched_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.url,
                    requester_id,
                    document.type,
                    document.status,
                    payload,
                    document.fetched_at.isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning(
                "cache_write_error",
                key=f"document:{key}",
                code=ErrorCode.CACHE_WRITE_FAILURE,
                exc_info=True,
            )
            with suppress(aiosqlite.Error):
                await self._db.rollback()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup_if_due(self, interval_hours: int) -> None:
        """Run cleanup only if interval_hours have elapsed since the last run.

        Reads and writes ``last_cleanup_at`` from the ``server_metadata`` table.
        Falls through to run cleanup if the metadata row is missing or unreadable.
        Non-fatal on failure.
        """
        try:
            cursor = await self._db.execute(
                "SELECT value FROM server_metadata WHERE key = 'last_cleanup_at'"
            )
            row = await cursor.fetchone()
            if row is not None:
                last_run = datetime.fromisoformat(row[0])
                if datetime.now(UTC) - last_run < timedelta(hours=interval_hours):
                    log.debug("cache_cleanup_skipped", reason="not_due")
                    return
        except (aiosqlite.Error, ValueError):
            log.warning("cache_metadata_read_error", exc_info=True)

        await self.cleanup_expired()

        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO server_metadata (key, value) VALUES ('last_cleanup_at', ?)",
                (datetime.now(UTC).isoformat(),),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_metadata_write_error", exc_info=True)

    async def cleanup_expired(self) -> None:
        """Delete cache rows whose TTL has elapsed. Non-fatal on failure."""
        try:
            cutoff = datetime.now(UTC).isoformat()
            cursor = await self._db.execute(
                "DELETE FROM document_cache WHERE expires_at < ?", (cutoff,)
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", deleted=deleted)
        except aiosqlite.Error:
            log.warning("cache_cleanup_error", exc_info=True)
