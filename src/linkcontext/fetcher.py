"""HTTP page fetcher with private-network protection.

All network I/O for scraping goes through a single Fetcher instance shared
across batches. The Fetcher receives an httpx.AsyncClient via constructor
injection — the lifespan owns the client lifecycle. Timeouts and redirect
policy are passed in on every call rather than read from global state.
"""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import httpx
import structlog

from linkcontext.errors import ErrorCode, LinkContextError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from linkcontext.config import FetcherSettings

log = structlog.get_logger()

PRIVATE_NETWORKS: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
]

BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        },
        limits=httpx.Limits(
            max_connections=max(10, settings.max_concurrency * 2),
            max_keepalive_connections=5,
        ),
    )


def is_private_address(url: str) -> bool:
    """True if *url* targets a literal private, loopback or link-local IP."""
    hostname = urlparse(url).hostname or ""
    try:
        addr = ipaddress.ip_address(hostname)
    except ValueError:
        return False  # hostname is a domain name, not an IP
    return any(addr in net for net in PRIVATE_NETWORKS)


class Fetcher:
    """HTTP GET with per-hop validation and typed failures."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_redirects: int = 5,
        block_private_networks: bool = True,
    ) -> None:
        self._client = client
        self._max_redirects = max_redirects
        self._block_private_networks = block_private_networks

    async def fetch(
        self,
        url: str,
        *,
        timeout: float,
        follow_redirects: bool = True,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Fetch *url* and return the response body as text.

        Raises LinkContextError with NETWORK_FAILURE for connection errors,
        timeouts, refused redirects and non-2xx statuses,
        UPSTREAM_FORMAT_FAILURE for a 404, or INVALID_INPUT when httpx
        rejects the URL or a redirect target.
        """
        current_url = url
        max_redirects = self._max_redirects if follow_redirects else 0

        try:
            for hop in range(max_redirects + 1):
                if self._block_private_networks and is_private_address(current_url):
                    log.warning("fetch_blocked", url=current_url, reason="private_network")
                    raise LinkContextError(
                        code=ErrorCode.NETWORK_FAILURE,
                        message=f"Refusing to fetch private network address: {current_url}",
                        suggestion="Only public hosts can be scraped.",
                        recoverable=False,
                    )

                response = await self._client.get(
                    current_url,
                    headers=dict(headers) if headers else None,
                    timeout=timeout,
                )

                if response.is_redirect and "location" in response.headers:
                    if hop == max_redirects:
                        raise LinkContextError(
                            code=ErrorCode.NETWORK_FAILURE,
                            message=(
                                f"Too many redirects fetching {url}"
                                if follow_redirects
                                else f"Redirect not followed for {url}"
                            ),
                            suggestion="Enable follow_redirects or use the final URL directly.",
                            recoverable=False,
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                if not response.is_success:
                    if response.status_code == 404:
                        raise LinkContextError(
                            code=ErrorCode.UPSTREAM_FORMAT_FAILURE,
                            message=f"HTTP 404 fetching {url}",
                            suggestion="The linked resource does not exist at this URL.",
                            recoverable=False,
                        )
                    raise LinkContextError(
                        code=ErrorCode.NETWORK_FAILURE,
                        message=f"HTTP {response.status_code} fetching {url}",
                        suggestion="The site may be temporarily unavailable or blocking scrapers.",
                        recoverable=response.status_code >= 500 or response.status_code == 429,
                    )

                log.debug(
                    "fetch_complete",
                    url=url,
                    status_code=response.status_code,
                    content_length=len(response.text),
                )
                return response.text

        except LinkContextError:
            raise
        except httpx.InvalidURL as exc:
            raise LinkContextError(
                code=ErrorCode.INVALID_INPUT,
                message=f"Invalid URL fetching {url}: {exc}",
                suggestion="Check the link, or the redirect target it points to.",
                recoverable=False,
            ) from exc
        except httpx.TimeoutException as exc:
            raise LinkContextError(
                code=ErrorCode.NETWORK_FAILURE,
                message=f"Timed out after {timeout}s fetching {url}",
                suggestion="Retry later or raise timeout_seconds.",
                recoverable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise LinkContextError(
                code=ErrorCode.NETWORK_FAILURE,
                message=f"Network error fetching {url}: {exc}",
                suggestion="Check that the host exists and is reachable.",
                recoverable=True,
            ) from exc

        # Unreachable but satisfies the type checker
        raise LinkContextError(
            code=ErrorCode.NETWORK_FAILURE,
            message="Redirect loop",
            suggestion="",
            recoverable=False,
        )
