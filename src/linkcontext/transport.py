"""Streamable HTTP transport for the MCP server.

``scrape_links`` makes outbound requests on behalf of whoever can reach the
endpoint, so the HTTP app is wrapped in a small ASGI guard before uvicorn
serves it.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from linkcontext.config import Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset({"2025-11-25", "2025-06-18", "2025-03-26"})
_LOCAL_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?$")
_BEARER_PREFIX = "Bearer "


class MCPSecurityMiddleware:
    """Pure ASGI guard in front of the MCP endpoint.

    Requests are rejected, in this order, when:

    - auth is enabled and the bearer key is missing or wrong (401);
    - an ``Origin`` header names anything but a loopback host (403);
    - ``MCP-Protocol-Version`` is present but unsupported (400).

    Non-HTTP scopes (lifespan) pass straight through. Pure ASGI rather than
    ``BaseHTTPMiddleware`` so SSE responses stream unbuffered.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        auth_enabled: bool,
        auth_key: str | None = None,
    ) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key

    def _is_authorised(self, headers: Headers) -> bool:
        if not self.auth_enabled:
            return True
        value = headers.get("authorization", "")
        if not self.auth_key or not value.startswith(_BEARER_PREFIX):
            return False
        return secrets.compare_digest(value[len(_BEARER_PREFIX) :], self.auth_key)

    def _rejection(self, headers: Headers) -> PlainTextResponse | None:
        if not self._is_authorised(headers):
            return PlainTextResponse("Unauthorized", status_code=401)

        origin = headers.get("origin", "")
        if origin and not _LOCAL_ORIGIN.match(origin):
            return PlainTextResponse("Forbidden", status_code=403)

        version = headers.get("mcp-protocol-version", "")
        if version and version not in SUPPORTED_PROTOCOL_VERSIONS:
            return PlainTextResponse(f"Unsupported protocol version: {version}", status_code=400)
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            rejection = self._rejection(Headers(scope=scope))
            if rejection is not None:
                log.info(
                    "http_request_rejected",
                    status=rejection.status_code,
                    path=scope.get("path"),
                )
                await rejection(scope, receive, send)
                return

        await self.app(scope, receive, send)


def resolve_auth_key(settings: Settings) -> str | None:
    """Return the bearer key to enforce, generating one when auth is on but unset."""
    http_log = log.bind(transport="http")
    if not settings.server.auth_enabled:
        http_log.warning("http_auth_disabled")
        return None

    if settings.server.auth_key:
        return settings.server.auth_key

    auth_key = secrets.token_urlsafe(32)
    http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)
    return auth_key


def build_http_app(mcp: FastMCP, settings: Settings) -> MCPSecurityMiddleware:
    return MCPSecurityMiddleware(
        mcp.streamable_http_app(),
        auth_enabled=settings.server.auth_enabled,
        auth_key=resolve_auth_key(settings),
    )


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve *mcp* over Streamable HTTP until interrupted."""
    log.info("http_server_starting", host=settings.server.host, port=settings.server.port)
    uvicorn.run(
        build_http_app(mcp, settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog owns logging
    )
