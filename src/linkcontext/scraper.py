"""Batch orchestrator.

Drives every URL of a batch through validate → classify → (cache lookup) →
strategy → normalise → (cache write). Each URL gets exactly one document back,
in input order, whatever happens to its neighbours:

- a per-URL ``LinkContextError`` becomes an error document for that URL;
- cache writes are best-effort and never change a URL's outcome;
- only a malformed request (no URLs, no requester) raises.

URLs are processed by a fixed-size pool of worker tasks. A cooperative
cancellation event is checked before each URL is started; URLs not started
when it is set come back as ``CANCELLED`` error documents, while finished
documents are kept.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog

from linkcontext.cache import DEFAULT_TTL_HOURS
from linkcontext.classifier import classify_link
from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.models.document import ExtractedDocument, LinkType
from linkcontext.models.scrape import BatchResult, BatchSummary
from linkcontext.normalizer import prepare_body
from linkcontext.strategies import StrategyDispatcher

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcontext.models.scrape import ScrapeOptions
    from linkcontext.protocols import CacheProtocol, FetcherProtocol

log = structlog.get_logger()

DEFAULT_MAX_CONCURRENCY = 4


def validate_url(url: object) -> str:
    """Reject anything that is not an absolute http(s) URL with a host."""
    if not isinstance(url, str) or not url or any(ch.isspace() for ch in url):
        raise LinkContextError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid URL format: {url!r}",
            suggestion="Provide absolute http:// or https:// URLs without whitespace.",
            recoverable=False,
        )
    try:
        parsed = urlparse(url)
        # .port raises ValueError for a non-numeric or out-of-range port.
        hostname, _port = parsed.hostname, parsed.port
    except ValueError as exc:
        raise LinkContextError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid URL format: {url!r}",
            suggestion="Provide absolute http:// or https:// URLs.",
            recoverable=False,
        ) from exc
    if parsed.scheme not in ("http", "https") or not hostname:
        raise LinkContextError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid URL format: {url!r}",
            suggestion="Provide absolute http:// or https:// URLs.",
            recoverable=False,
        )
    return url


def _finalise(document: ExtractedDocument, options: ScrapeOptions) -> ExtractedDocument:
    """Normalise the body and enforce the success-document invariants."""
    if not document.title.strip():
        raise LinkContextError(
            code=ErrorCode.PARSE_FAILURE,
            message=f"No usable title extracted from {document.url}",
            suggestion="The page layout may be unsupported.",
            recoverable=False,
        )
    return document.model_copy(
        update={"body_text": prepare_body(document.body_text, options.max_content_length)}
    )


async def _scrape_one(
    url: str,
    *,
    requester_id: str,
    options: ScrapeOptions,
    fetcher: FetcherProtocol,
    strategies: StrategyDispatcher,
    cache: CacheProtocol | None,
    cache_ttl_hours: int,
) -> ExtractedDocument:
    url_log = log.bind(url=url)
    link_type = LinkType.WEBSITE
    active_cache = cache if options.cache_results else None

    try:
        validate_url(url)
        link_type = classify_link(url).type

        if active_cache is not None:
            cached = await active_cache.get_document(url)
            if cached is not None:
                url_log.info("cache_hit", type=link_type)
                return cached

        strategy = strategies.select(url, link_type)
        url_log.debug("strategy_selected", strategy=strategy.name, type=link_type)
        document = _finalise(await strategy.extract(url, link_type, options, fetcher), options)
    except LinkContextError as exc:
        url_log.warning("scrape_failed", code=exc.code, message=exc.message)
        return ExtractedDocument.failure(url, exc.code, exc.message, link_type)
    except Exception as exc:
        url_log.error("scrape_unexpected_error", exc_info=True)
        return ExtractedDocument.failure(
            url, ErrorCode.PARSE_FAILURE, f"Unexpected error: {exc}", link_type
        )

    if active_cache is not None:
        try:
            await active_cache.put_document(document, requester_id=requester_id, ttl_hours=cache_ttl_hours)
        except Exception:
            url_log.warning("cache_write_error", code=ErrorCode.CACHE_WRITE_FAILURE, exc_info=True)

    url_log.info("scrape_succeeded", type=link_type, title=document.title)
    return document


async def scrape_links(
    urls: Sequence[str],
    requester_id: str,
    options: ScrapeOptions,
    *,
    fetcher: FetcherProtocol,
    strategies: StrategyDispatcher | None = None,
    cache: CacheProtocol | None = None,
    cache_ttl_hours: int = DEFAULT_TTL_HOURS,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    cancel_event: asyncio.Event | None = None,
) -> BatchResult:
    """Scrape *urls* and return one document per URL, in input order."""
    if not urls:
        raise LinkContextError(
            code=ErrorCode.INVALID_REQUEST,
            message="No URLs provided",
            suggestion="Pass at least one URL to scrape.",
            recoverable=False,
        )
    if not requester_id or not requester_id.strip():
        raise LinkContextError(
            code=ErrorCode.INVALID_REQUEST,
            message="requester_id is required",
            suggestion="Pass the identity of the caller requesting the scrape.",
            recoverable=False,
        )

    strategies = strategies or StrategyDispatcher()
    ttl_hours = options.cache_ttl_hours if options.cache_ttl_hours is not None else cache_ttl_hours
    batch_log = log.bind(requester_id=requester_id)
    batch_log.info("batch_started", total=len(urls))

    queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
    for item in enumerate(urls):
        queue.put_nowait(item)
    results: list[ExtractedDocument | None] = [None] * len(urls)

    async def worker() -> None:
        while cancel_event is None or not cancel_event.is_set():
            try:
                index, url = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            results[index] = await _scrape_one(
                url,
                requester_id=requester_id,
                options=options,
                fetcher=fetcher,
                strategies=strategies,
                cache=cache,
                cache_ttl_hours=ttl_hours,
            )

    workers = [asyncio.create_task(worker()) for _ in range(min(max_concurrency, len(urls)))]
    await asyncio.gather(*workers)

    cancelled = any(doc is None for doc in results)
    documents = [
        doc
        if doc is not None
        else ExtractedDocument.failure(
            url,
            ErrorCode.CANCELLED,
            "Batch cancelled before this URL was scraped",
            classify_link(url).type,
        )
        for url, doc in zip(urls, results, strict=True)
    ]

    succeeded = sum(1 for doc in documents if doc.status == "success")
    summary = BatchSummary(
        total=len(documents),
        succeeded=succeeded,
        failed=len(documents) - succeeded,
    )
    batch_log.info(
        "batch_complete",
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
        cancelled=cancelled,
    )
    return BatchResult(documents=documents, summary=summary, cancelled=cancelled)
