"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import linkcontext.tools.detect_links as t_detect
import linkcontext.tools.scrape_links as t_scrape
from linkcontext import __version__
from linkcontext.cache import Cache
from linkcontext.config import Settings
from linkcontext.errors import LinkContextError
from linkcontext.fetcher import Fetcher, build_http_client
from linkcontext.schedulers import run_cache_cleanup_scheduler
from linkcontext.state import AppState
from linkcontext.strategies import StrategyDispatcher
from linkcontext.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries the MCP JSON-RPC stream in stdio mode
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


async def _open_cache(settings: Settings) -> tuple[aiosqlite.Connection | None, Cache | None]:
    if not settings.cache.enabled:
        log.info("cache_disabled")
        return None, None
    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(db_path))
    cache = Cache(db)
    await cache.init_db()
    return db, cache


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    http_client = build_http_client(settings.fetcher)
    fetcher = Fetcher(
        http_client,
        max_redirects=settings.fetcher.max_redirects,
        block_private_networks=settings.fetcher.block_private_networks,
    )
    db, cache = await _open_cache(settings)

    state = AppState(
        settings=settings,
        http_client=http_client,
        cache=cache,
        fetcher=fetcher,
        strategies=StrategyDispatcher.from_settings(settings.fetcher),
    )

    cache_cleanup_task = asyncio.create_task(run_cache_cleanup_scheduler(state))

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        cache_enabled=cache is not None,
    )

    try:
        yield state
    finally:
        cache_cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cache_cleanup_task
        await http_client.aclose()
        if db is not None:
            await db.close()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("linkcontext", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg — set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: LinkContextError) -> CallToolResult:
    """Convert a LinkContextError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


@mcp.tool()
async def detect_links(text: str, ctx: Context) -> object:
    """Find every http(s) URL in a block of text and classify it.

    Returns each link with its type (repository, article, documentation,
    social, video, qa or website), a confidence score and its character
    offset in the text.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_detect.handle(text, state)
    except LinkContextError as exc:
        log.warning(
            "tool_error",
            tool="detect_links",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="detect_links", exc_info=True)
        raise


@mcp.tool()
async def scrape_links(
    urls: list[str],
    requester_id: str,
    ctx: Context,
    timeout_seconds: float | None = None,
    max_content_length: int | None = None,
    follow_redirects: bool | None = None,
    cache_results: bool | None = None,
    cache_ttl_hours: int | None = None,
) -> object:
    """Scrape up to 20 URLs and return one structured document per URL.

    Documents come back in request order. A URL that cannot be scraped yields
    an error document with a code; it never fails the rest of the batch.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_scrape.handle(
            urls,
            requester_id,
            state,
            timeout_seconds=timeout_seconds,
            max_content_length=max_content_length,
            follow_redirects=follow_redirects,
            cache_results=cache_results,
            cache_ttl_hours=cache_ttl_hours,
        )
    except LinkContextError as exc:
        log.warning(
            "tool_error",
            tool="scrape_links",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="scrape_links", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        _setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
