"""Unit tests for linkcontext.strategies.repository."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.fetcher import Fetcher
from linkcontext.models.document import LinkType, StructuredManifest
from linkcontext.models.scrape import ScrapeOptions
from linkcontext.strategies.repository import (
    RAW_CONTENT_BASE,
    RepositoryStrategy,
    parse_count,
    parse_repo_url,
    raw_file_url,
)

REPO_URL = "https://github.com/octo/widgets"
RAW = f"{RAW_CONTENT_BASE}/octo/widgets"

REPO_HTML = """<html><head>
  <meta property="og:description" content="OG fallback">
</head><body>
  <strong itemprop="name"><a href="/octo/widgets">widgets</a></strong>
  <p class="f4 my-3">Reusable widgets for everyone</p>
  <span itemprop="programmingLanguage">Python</span>
  <span id="repo-stars-counter-star" title="1,234">1.2k</span>
  <span id="repo-network-counter" title="56">56</span>
  <a class="topic-tag">ui</a><a class="topic-tag">widgets</a>
</body></html>"""


def _mock_raw_host_missing() -> None:
    """Catch-all 404 for raw-content probes; register after specific routes."""
    respx.route(host="raw.githubusercontent.com").mock(return_value=httpx.Response(404))


class TestParseRepoUrl:
    def test_owner_and_repo(self) -> None:
        assert parse_repo_url("https://github.com/octo/widgets/tree/main/src") == (
            "octo",
            "widgets",
        )

    def test_strips_git_suffix(self) -> None:
        assert parse_repo_url("https://github.com/octo/widgets.git") == ("octo", "widgets")

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octo",
            "https://gitlab.com/octo/widgets",
            "https://docs.github.com/en/actions",
        ],
    )
    def test_rejects_non_repository_urls(self, url: str) -> None:
        with pytest.raises(LinkContextError) as exc_info:
            parse_repo_url(url)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestParseCount:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("1,234", 1234), ("1.2k", 1200), ("3M", 3_000_000), ("56", 56), ("", 0), ("n/a", 0)],
    )
    def test_counts(self, text: str, expected: int) -> None:
        assert parse_count(text) == expected


def test_raw_file_url() -> None:
    assert raw_file_url("octo", "widgets", "main", "go.mod") == f"{RAW}/main/go.mod"


class TestRepositoryStrategy:
    async def test_readme_falls_back_to_master(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(200, text=REPO_HTML))
            main_readme = respx.get(f"{RAW}/main/README.md").mock(
                return_value=httpx.Response(404)
            )
            master_readme = respx.get(f"{RAW}/master/README.md").mock(
                return_value=httpx.Response(200, text="# Widgets\n\nFrom master.")
            )
            _mock_raw_host_missing()

            document = await RepositoryStrategy().extract(
                REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
            )

            assert main_readme.call_count == 1
            assert master_readme.call_count == 1

        assert document.status == "success"
        assert document.body_text == "# Widgets\n\nFrom master."
        assert document.repository is not None
        assert document.repository.readme == "# Widgets\n\nFrom master."
        assert document.repository.default_branch == "master"

    async def test_readme_missing_everywhere_is_still_success(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(200, text=REPO_HTML))
            _mock_raw_host_missing()

            document = await RepositoryStrategy().extract(
                REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
            )

        assert document.status == "success"
        assert document.body_text == ""
        assert document.repository is not None
        assert document.repository.readme == ""
        assert document.repository.project_files == {}

    async def test_page_metadata(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(200, text=REPO_HTML))
            respx.get(f"{RAW}/main/README.md").mock(
                return_value=httpx.Response(200, text="# Widgets")
            )
            _mock_raw_host_missing()

            document = await RepositoryStrategy().extract(
                REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
            )

        assert document.title == "octo/widgets"
        assert document.description == "Reusable widgets for everyone"
        assert document.metadata.author == "octo"
        assert document.metadata.platform == "GitHub"
        assert document.metadata.language == "Python"
        assert document.metadata.tags == ["ui", "widgets"]
        repository = document.repository
        assert repository is not None
        assert repository.owner == "octo"
        assert repository.name == "widgets"
        assert repository.stars == 1234
        assert repository.forks == 56
        assert repository.language == "Python"
        assert repository.default_branch == "main"

    async def test_project_files_probed(self, fetcher: Fetcher) -> None:
        package_json = json.dumps({"name": "widgets", "dependencies": {"react": "18"}})
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(200, text=REPO_HTML))
            respx.get(f"{RAW}/main/README.md").mock(
                return_value=httpx.Response(200, text="# Widgets")
            )
            respx.get(f"{RAW}/main/package.json").mock(
                return_value=httpx.Response(200, text=package_json)
            )
            respx.get(f"{RAW}/master/LICENSE").mock(
                return_value=httpx.Response(200, text="MIT License")
            )
            _mock_raw_host_missing()

            document = await RepositoryStrategy().extract(
                REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
            )

        assert document.repository is not None
        files = document.repository.project_files
        assert set(files) == {"package.json", "LICENSE"}
        manifest = files["package.json"].manifest
        assert isinstance(manifest, StructuredManifest)
        assert manifest.dependencies == ["react"]
        assert files["LICENSE"].content_preview == "MIT License"

    async def test_description_falls_back_to_og_description(self, fetcher: Fetcher) -> None:
        html = '<head><meta property="og:description" content="OG only"></head>'
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(200, text=html))
            _mock_raw_host_missing()

            document = await RepositoryStrategy().extract(
                REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
            )

        assert document.description == "OG only"
        # Name falls back to the repository segment of the URL
        assert document.title == "octo/widgets"

    async def test_repository_page_failure_propagates(self, fetcher: Fetcher) -> None:
        with respx.mock:
            respx.get(REPO_URL).mock(return_value=httpx.Response(404))
            with pytest.raises(LinkContextError) as exc_info:
                await RepositoryStrategy().extract(
                    REPO_URL, LinkType.SOURCE_REPO, ScrapeOptions(), fetcher
                )
        assert exc_info.value.code == ErrorCode.UPSTREAM_FORMAT_FAILURE
