"""Unit tests for linkcontext.fetcher."""

from __future__ import annotations

import httpx
import pytest
import respx

from linkcontext.config import FetcherSettings
from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.fetcher import BROWSER_HEADERS, Fetcher, build_http_client, is_private_address

# ---------------------------------------------------------------------------
# is_private_address
# ---------------------------------------------------------------------------


class TestIsPrivateAddress:
    @pytest.mark.parametrize(
        "url",
        [
            "http://10.0.0.1/secret",
            "http://172.16.0.1/secret",
            "http://192.168.1.1/secret",
            "http://127.0.0.1/secret",
            "http://169.254.169.254/latest/meta-data",
            "http://[::1]/secret",
            "http://[fc00::1]/secret",
        ],
    )
    def test_private_addresses(self, url: str) -> None:
        assert is_private_address(url)

    def test_public_ip(self) -> None:
        assert not is_private_address("http://8.8.8.8/")

    def test_domain_name(self) -> None:
        assert not is_private_address("https://example.com/")


# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    async def test_client_configuration(self) -> None:
        client = build_http_client(FetcherSettings(user_agent="test-agent/1.0"))
        try:
            assert isinstance(client, httpx.AsyncClient)
            # follow_redirects is False (we handle redirects manually)
            assert client.follow_redirects is False
            assert client.headers["user-agent"] == "test-agent/1.0"
        finally:
            await client.aclose()


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class TestFetcher:
    async def test_successful_fetch(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/page").mock(
                return_value=httpx.Response(200, text="<p>Hello world</p>")
            )
            result = await fetcher.fetch("https://example.com/page", timeout=5)
            assert result == "<p>Hello world</p>"

    async def test_extra_headers_are_sent(self, fetcher: Fetcher) -> None:
        with respx.mock:
            route = respx.get("https://example.com/page").mock(
                return_value=httpx.Response(200, text="ok")
            )
            await fetcher.fetch("https://example.com/page", timeout=5, headers=BROWSER_HEADERS)
            sent = route.calls.last.request
            assert sent.headers["user-agent"] == BROWSER_HEADERS["User-Agent"]

    async def test_404_is_upstream_format_failure(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/missing").mock(return_value=httpx.Response(404))
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/missing", timeout=5)
            assert exc_info.value.code == ErrorCode.UPSTREAM_FORMAT_FAILURE
            assert exc_info.value.recoverable is False

    async def test_500_is_network_failure(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/error").mock(return_value=httpx.Response(500))
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/error", timeout=5)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
            assert exc_info.value.recoverable is True

    async def test_403_is_network_failure(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/forbidden").mock(return_value=httpx.Response(403))
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/forbidden", timeout=5)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
            assert exc_info.value.recoverable is False

    async def test_connect_error_is_network_failure(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/down").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/down", timeout=5)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
            assert exc_info.value.recoverable is True

    async def test_timeout_is_network_failure(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/slow").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/slow", timeout=1)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
            assert "Timed out" in exc_info.value.message

    async def test_redirect_followed(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(301, headers={"location": "https://example.com/new"})
            )
            respx.get("https://example.com/new").mock(
                return_value=httpx.Response(200, text="Redirected content")
            )
            result = await fetcher.fetch("https://example.com/old", timeout=5)
            assert result == "Redirected content"

    async def test_relative_redirect_resolved(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(302, headers={"location": "/new-path"})
            )
            respx.get("https://example.com/new-path").mock(
                return_value=httpx.Response(200, text="Relative redirect content")
            )
            result = await fetcher.fetch("https://example.com/old", timeout=5)
            assert result == "Relative redirect content"

    async def test_redirect_refused_when_not_following(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(301, headers={"location": "https://example.com/new"})
            )
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/old", timeout=5, follow_redirects=False)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE

    async def test_redirect_to_private_ip_blocked(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/redirect").mock(
                return_value=httpx.Response(301, headers={"location": "http://127.0.0.1/internal"})
            )
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/redirect", timeout=5)
            assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
            assert "private network" in exc_info.value.message

    async def test_redirect_to_malformed_url_is_invalid_input(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get("https://example.com/moved").mock(
                return_value=httpx.Response(302, headers={"location": "http://example.com:port/x"})
            )
            with pytest.raises(LinkContextError) as exc_info:
                await fetcher.fetch("https://example.com/moved", timeout=5)
            assert exc_info.value.code == ErrorCode.INVALID_INPUT

    async def test_private_ip_blocked_before_request(self, fetcher: Fetcher) -> None:
        with respx.mock:
            route = respx.get("http://192.168.0.10/admin")
            with pytest.raises(LinkContextError):
                await fetcher.fetch("http://192.168.0.10/admin", timeout=5)
            assert not route.called

    async def test_private_ip_allowed_when_blocking_disabled(self) -> None:
        with respx.mock:
            respx.get("http://127.0.0.1/local").mock(return_value=httpx.Response(200, text="ok"))
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client, block_private_networks=False)
                assert await fetcher.fetch("http://127.0.0.1/local", timeout=5) == "ok"

    async def test_too_many_redirects(self) -> None:
        with respx.mock:
            # 3 redirects (max is 2)
            for i in range(3):
                respx.get(f"https://example.com/r{i}").mock(
                    return_value=httpx.Response(
                        301, headers={"location": f"https://example.com/r{i + 1}"}
                    )
                )
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client, max_redirects=2)
                with pytest.raises(LinkContextError) as exc_info:
                    await fetcher.fetch("https://example.com/r0", timeout=5)
                assert exc_info.value.code == ErrorCode.NETWORK_FAILURE
                assert "Too many redirects" in exc_info.value.message
