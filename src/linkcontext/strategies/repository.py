"""Source-repository strategy (GitHub).

Three steps, each more forgiving than the last:

1. The repository page must load. Its name and description are read via
   fallback chains that end in placeholders, so layout changes degrade the
   result instead of failing it.
2. The README is read from the raw-content host on ``main``, retried once on
   ``master``. Missing on both leaves the body empty; the document is still
   a success.
3. Well-known project files are probed independently, each with its own
   short timeout and branch retry. A missing file is simply skipped.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from linkcontext.classifier import SOURCE_REPO_HOSTS, split_url
from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.fetcher import BROWSER_HEADERS
from linkcontext.models.document import (
    DocumentMetadata,
    ExtractedDocument,
    RepositoryMetadata,
)
from linkcontext.strategies.base import (
    css_attr,
    css_text,
    first_match,
    literal,
    meta,
    meta_property,
    parse_guard,
    parse_html,
)
from linkcontext.strategies.manifests import PROBED_FILES, ProbedFile, build_project_file

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from linkcontext.models.document import LinkType, ProjectFile
    from linkcontext.models.scrape import ScrapeOptions
    from linkcontext.protocols import FetcherProtocol

log = structlog.get_logger()

RAW_CONTENT_BASE = "https://raw.githubusercontent.com"
BRANCHES: tuple[str, ...] = ("main", "master")

_REPO_PATH_RE = re.compile(r"^/([^/]+)/([^/]+)")
_COUNT_RE = re.compile(r"([\d.,]+)\s*([kKmM]?)")

_DESCRIPTION_CHAIN = (
    css_text("p.f4.my-3"),
    css_text('[data-pjax="#js-repo-pjax-container"] p'),
    css_text(".BorderGrid-cell p.f4"),
    meta("description"),
    meta_property("og:description"),
    literal("No description available"),
)
_LANGUAGE_CHAIN = (
    css_text('[itemprop="programmingLanguage"]'),
    css_text(".BorderGrid-cell li .color-fg-default.text-bold"),
)
_STARS_CHAIN = (
    css_attr("#repo-stars-counter-star", "title"),
    css_text("#repo-stars-counter-star"),
    css_text('a[href$="/stargazers"] strong'),
)
_FORKS_CHAIN = (
    css_attr("#repo-network-counter", "title"),
    css_text("#repo-network-counter"),
    css_text('a[href$="/forks"] strong'),
)


def parse_repo_url(url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` for a repository URL.

    Raises LinkContextError(INVALID_INPUT) when the URL is not
    ``github.com/<owner>/<repo>``.
    """
    host, path = split_url(url)
    match = _REPO_PATH_RE.match(path)
    if host not in SOURCE_REPO_HOSTS or match is None:
        raise LinkContextError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Not a repository URL: {url}",
            suggestion="Use a URL of the form https://github.com/<owner>/<repo>.",
            recoverable=False,
        )
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


def parse_count(text: str) -> int:
    """Parse GitHub counters such as ``"1,234"``, ``"1.2k"`` or ``"3M"``."""
    match = _COUNT_RE.search(text or "")
    if match is None:
        return 0
    number, suffix = match.groups()
    try:
        value = float(number.replace(",", ""))
    except ValueError:
        return 0
    multiplier = {"k": 1_000, "m": 1_000_000}.get(suffix.lower(), 1)
    return int(value * multiplier)


def raw_file_url(owner: str, repo: str, branch: str, path: str) -> str:
    return f"{RAW_CONTENT_BASE}/{owner}/{repo}/{branch}/{path}"


class RepositoryStrategy:
    """Scrape a GitHub repository page, its README and its project files."""

    name = "repository"

    def __init__(self, *, readme_timeout: float = 10.0, probe_timeout: float = 8.0) -> None:
        self._readme_timeout = readme_timeout
        self._probe_timeout = probe_timeout

    async def extract(
        self,
        url: str,
        link_type: LinkType,
        options: ScrapeOptions,
        fetcher: FetcherProtocol,
    ) -> ExtractedDocument:
        owner, repo = parse_repo_url(url)
        log.info("repository_scrape_started", owner=owner, repo=repo)

        html = await fetcher.fetch(
            url,
            timeout=options.timeout_seconds,
            follow_redirects=options.follow_redirects,
            headers=BROWSER_HEADERS,
        )
        with parse_guard(self.name, url):
            soup = parse_html(html)
            page = self._parse_page(soup, repo)

        readme = await self._fetch_readme(fetcher, owner, repo)
        readme_branch, readme_text = readme if readme is not None else (BRANCHES[0], "")
        project_files = await self._probe_project_files(fetcher, owner, repo)

        log.info(
            "repository_scrape_complete",
            owner=owner,
            repo=repo,
            readme_found=readme is not None,
            project_files=sorted(project_files),
        )

        repository = RepositoryMetadata(
            owner=owner,
            name=page["name"],
            stars=page["stars"],
            forks=page["forks"],
            language=page["language"],
            readme=readme_text,
            topics=page["topics"],
            project_files=project_files,
            default_branch=readme_branch,
        )
        return ExtractedDocument(
            url=url,
            type=link_type,
            title=f"{owner}/{page['name']}",
            description=page["description"],
            body_text=readme_text,
            metadata=DocumentMetadata(
                author=owner,
                language=page["language"],
                tags=page["topics"] or None,
                platform="GitHub",
            ),
            repository=repository,
        )

    def _parse_page(self, soup: BeautifulSoup, repo: str) -> dict:
        name_chain = (
            css_text('strong[itemprop="name"] a'),
            css_text('h1[data-pjax="#js-repo-pjax-container"] strong a'),
            css_text("h1 strong a"),
            literal(repo),
        )
        topics = [a.get_text(strip=True) for a in soup.select("a.topic-tag")]
        return {
            "name": first_match(soup, name_chain),
            "description": first_match(soup, _DESCRIPTION_CHAIN),
            "language": first_match(soup, _LANGUAGE_CHAIN) or None,
            "stars": parse_count(first_match(soup, _STARS_CHAIN)),
            "forks": parse_count(first_match(soup, _FORKS_CHAIN)),
            "topics": [t for t in topics if t],
        }

    async def _fetch_raw(
        self,
        fetcher: FetcherProtocol,
        owner: str,
        repo: str,
        path: str,
        *,
        timeout: float,
    ) -> tuple[str, str] | None:
        """Fetch *path* from the main branch, then once from master.

        Returns ``(branch, content)`` or ``None`` when absent on both.
        """
        for branch in BRANCHES:
            raw_url = raw_file_url(owner, repo, branch, path)
            try:
                content = await fetcher.fetch(raw_url, timeout=timeout, headers=BROWSER_HEADERS)
            except LinkContextError as exc:
                log.debug("raw_file_missing", url=raw_url, code=exc.code)
                continue
            return branch, content
        return None

    async def _fetch_readme(
        self, fetcher: FetcherProtocol, owner: str, repo: str
    ) -> tuple[str, str] | None:
        readme = await self._fetch_raw(
            fetcher, owner, repo, "README.md", timeout=self._readme_timeout
        )
        if readme is None:
            # Absent on every branch: an upstream-format miss, recorded but not fatal.
            log.info(
                "readme_not_found",
                owner=owner,
                repo=repo,
                code=ErrorCode.UPSTREAM_FORMAT_FAILURE,
                branches=list(BRANCHES),
            )
        return readme

    async def _probe_one(
        self, fetcher: FetcherProtocol, owner: str, repo: str, probed: ProbedFile
    ) -> ProjectFile | None:
        found = await self._fetch_raw(fetcher, owner, repo, probed.name, timeout=self._probe_timeout)
        if found is None:
            return None
        _branch, content = found
        return build_project_file(probed, content)

    async def _probe_project_files(
        self, fetcher: FetcherProtocol, owner: str, repo: str
    ) -> dict[str, ProjectFile]:
        results = await asyncio.gather(
            *(self._probe_one(fetcher, owner, repo, probed) for probed in PROBED_FILES)
        )
        return {pf.name: pf for pf in results if pf is not None}
