"""Unit tests for the document and batch models."""

from __future__ import annotations

import pydantic
import pytest

from linkcontext.config import Settings
from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.models.document import ExtractedDocument, LinkType
from linkcontext.models.scrape import ScrapeOptions
from linkcontext.models.tools import ScrapeLinksInput


class TestExtractedDocument:
    def test_failure_document(self) -> None:
        document = ExtractedDocument.failure(
            "https://example.com", ErrorCode.NETWORK_FAILURE, "boom", LinkType.ARTICLE
        )
        assert document.status == "error"
        assert document.title == "Error"
        assert document.description == "Failed to scrape content"
        assert document.body_text == ""
        assert document.error_code == ErrorCode.NETWORK_FAILURE
        assert document.error_message == "boom"
        assert document.type == LinkType.ARTICLE

    def test_ids_are_unique(self) -> None:
        first = ExtractedDocument(url="https://a.com", type=LinkType.WEBSITE, title="A")
        second = ExtractedDocument(url="https://a.com", type=LinkType.WEBSITE, title="A")
        assert first.id != second.id

    def test_is_frozen(self) -> None:
        document = ExtractedDocument(url="https://a.com", type=LinkType.WEBSITE, title="A")
        with pytest.raises(pydantic.ValidationError):
            document.url = "https://b.com"  # type: ignore[misc]

    def test_fetched_at_is_utc(self) -> None:
        document = ExtractedDocument(url="https://a.com", type=LinkType.WEBSITE, title="A")
        assert document.fetched_at.utcoffset() is not None
        assert document.fetched_at.utcoffset().total_seconds() == 0


class TestScrapeOptions:
    def test_from_settings_uses_configured_defaults(self) -> None:
        settings = Settings(fetcher={"timeout_seconds": 30, "max_content_length": 500})
        options = ScrapeOptions.from_settings(settings)
        assert options.timeout_seconds == 30
        assert options.max_content_length == 500
        assert options.follow_redirects is True
        assert options.cache_results is True

    def test_overrides_win_and_none_is_ignored(self) -> None:
        options = ScrapeOptions.from_settings(
            Settings(), timeout_seconds=5, follow_redirects=None, cache_ttl_hours=2
        )
        assert options.timeout_seconds == 5
        assert options.follow_redirects is True
        assert options.cache_ttl_hours == 2

    def test_cache_disabled_in_settings(self) -> None:
        options = ScrapeOptions.from_settings(Settings(cache={"enabled": False}))
        assert options.cache_results is False


class TestScrapeLinksInput:
    def test_requester_is_stripped(self) -> None:
        validated = ScrapeLinksInput(urls=["https://a.com"], requester_id="  user-1 ")
        assert validated.requester_id == "user-1"

    def test_url_count_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ScrapeLinksInput(urls=[], requester_id="user")
        with pytest.raises(pydantic.ValidationError):
            ScrapeLinksInput(urls=["https://a.com"] * 21, requester_id="user")


class TestLinkContextError:
    def test_to_dict(self) -> None:
        error = LinkContextError(
            code=ErrorCode.NETWORK_FAILURE,
            message="Timed out",
            suggestion="Retry later.",
            recoverable=True,
        )
        assert error.to_dict() == {
            "error": {
                "code": ErrorCode.NETWORK_FAILURE,
                "message": "Timed out",
                "suggestion": "Retry later.",
                "recoverable": True,
            }
        }
        assert str(error) == "Timed out"
