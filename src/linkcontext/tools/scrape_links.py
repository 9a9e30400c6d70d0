"""Tool handler for scrape_links.

Receives AppState, validates the request, merges per-call options over the
configured defaults and delegates to the batch orchestrator. No MCP or
FastMCP imports — server.py handles the MCP wiring.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.models.scrape import ScrapeOptions
from linkcontext.models.tools import ScrapeLinksInput, ScrapeLinksOutput
from linkcontext.scraper import scrape_links

if TYPE_CHECKING:
    from linkcontext.state import AppState


async def handle(
    urls: list[str],
    requester_id: str,
    state: AppState,
    *,
    timeout_seconds: float | None = None,
    max_content_length: int | None = None,
    follow_redirects: bool | None = None,
    cache_results: bool | None = None,
    cache_ttl_hours: int | None = None,
) -> dict:
    """Handle a scrape_links tool call."""
    log = structlog.get_logger().bind(tool="scrape_links", requester_id=requester_id)
    log.info("handler_called", url_count=len(urls) if isinstance(urls, list) else None)

    try:
        validated = ScrapeLinksInput(
            urls=urls,
            requester_id=requester_id,
            timeout_seconds=timeout_seconds,
            max_content_length=max_content_length,
            follow_redirects=follow_redirects,
            cache_results=cache_results,
            cache_ttl_hours=cache_ttl_hours,
        )
    except ValueError as exc:
        raise LinkContextError(
            code=ErrorCode.INVALID_REQUEST,
            message=str(exc),
            suggestion="Provide 1-20 URLs and a non-empty requester_id.",
            recoverable=False,
        ) from exc

    if state.fetcher is None:
        raise RuntimeError("Fetcher not initialized")

    settings = state.settings
    options = ScrapeOptions.from_settings(
        settings,
        timeout_seconds=validated.timeout_seconds,
        max_content_length=validated.max_content_length,
        follow_redirects=validated.follow_redirects,
        cache_results=validated.cache_results,
        cache_ttl_hours=validated.cache_ttl_hours,
    )

    result = await scrape_links(
        validated.urls,
        validated.requester_id,
        options,
        fetcher=state.fetcher,
        strategies=state.strategies,
        cache=state.cache if settings.cache.enabled else None,
        cache_ttl_hours=settings.cache.ttl_hours,
        max_concurrency=settings.fetcher.max_concurrency,
    )
    log.info(
        "scrape_complete",
        total=result.summary.total,
        succeeded=result.summary.succeeded,
        failed=result.summary.failed,
    )

    output = ScrapeLinksOutput(
        documents=result.documents,
        summary=result.summary,
        cancelled=result.cancelled,
        scraped_at=datetime.now(UTC).isoformat(),
    )
    return output.model_dump(mode="json")
