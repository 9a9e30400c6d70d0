from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from linkcontext.models.document import ExtractedDocument

if TYPE_CHECKING:
    from linkcontext.config import Settings


class ScrapeOptions(BaseModel):
    """Per-call knobs for a batch. Defaults mirror ``FetcherSettings``."""

    timeout_seconds: float = Field(default=15.0, gt=0)
    max_content_length: int = Field(default=6000, ge=1)
    follow_redirects: bool = True
    cache_results: bool = True
    cache_ttl_hours: int | None = Field(default=None, ge=0)  # None → settings.cache.ttl_hours

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: object) -> ScrapeOptions:
        values: dict[str, object] = {
            "timeout_seconds": settings.fetcher.timeout_seconds,
            "max_content_length": settings.fetcher.max_content_length,
            "follow_redirects": settings.fetcher.follow_redirects,
            "cache_results": settings.cache.enabled,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


class BatchSummary(BaseModel):
    total: int
    succeeded: int
    failed: int


class BatchResult(BaseModel):
    documents: list[ExtractedDocument]  # Same order as the requested URLs
    summary: BatchSummary
    cancelled: bool = False
