"""Article-platform strategies.

Each platform (Medium, Dev.to, Hashnode, Substack) is a table of selector
chains; one ``ArticleStrategy`` class runs any of them. Adding a platform
means adding an ``ArticlePlatform`` entry, not a new code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from linkcontext.classifier import host_matches, split_url
from linkcontext.fetcher import BROWSER_HEADERS
from linkcontext.models.document import DocumentMetadata, ExtractedDocument
from linkcontext.strategies.base import (
    Chain,
    block_texts,
    collect_tags,
    css_attr,
    css_text,
    document_text,
    first_match,
    literal,
    meta,
    meta_property,
    page_language,
    parse_guard,
    parse_html,
    title_tag,
)

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from linkcontext.models.document import LinkType
    from linkcontext.models.scrape import ScrapeOptions
    from linkcontext.protocols import FetcherProtocol

log = structlog.get_logger()

# A container is accepted once its block text exceeds this many characters.
MIN_CONTAINER_TEXT = 100
MAX_TAGS = 5

_DESCRIPTION_META: Chain = (meta("description"), meta_property("og:description"))


@dataclass(frozen=True)
class ArticlePlatform:
    name: str
    domains: tuple[str, ...]
    title: Chain
    description: Chain
    author: Chain
    publish_date: Chain
    reading_time: Chain
    containers: tuple[str, ...]
    tag_selector: str | None = None


def _title_chain(*specific: str, suffix: str | None = None) -> Chain:
    return (
        *(css_text(selector) for selector in specific),
        css_text("h1"),
        title_tag(strip_suffix=suffix),
        literal("No title found"),
    )


def _description_chain(*specific: str) -> Chain:
    return (
        *_DESCRIPTION_META,
        *(css_text(selector) for selector in specific),
        literal("No description available"),
    )


MEDIUM = ArticlePlatform(
    name="Medium",
    domains=("medium.com",),
    title=_title_chain('h1[data-testid="storyTitle"]', suffix=" | Medium"),
    description=_description_chain('h2[data-testid="subtitle"]'),
    author=(
        meta("author"),
        css_text('a[rel="author"]'),
        css_text('[data-testid="authorName"]'),
        css_text(".author-name"),
    ),
    publish_date=(
        meta_property("article:published_time"),
        css_attr("time", "datetime"),
        css_text('[data-testid="storyPublishDate"]'),
    ),
    reading_time=(css_text('[data-testid="storyReadTime"]'), css_text(".reading-time")),
    containers=(
        "article section",
        '[data-testid="storyContent"]',
        ".postArticle-content",
        ".section-content",
        "article",
        ".post-content",
    ),
    tag_selector='a[href*="/tag/"]',
)

DEVTO = ArticlePlatform(
    name="Dev.to",
    domains=("dev.to",),
    title=_title_chain("h1.crayons-article__header__title", suffix=" - DEV Community"),
    description=_description_chain(),
    author=(css_text(".crayons-article__header__meta a"), meta("author")),
    publish_date=(css_attr("time", "datetime"), meta_property("article:published_time")),
    reading_time=(css_text(".crayons-article__header__meta time ~ span"),),
    containers=("#article-body", ".crayons-article__body", ".crayons-article__main", "article"),
    tag_selector=".crayons-tag",
)

HASHNODE = ArticlePlatform(
    name="Hashnode",
    domains=("hashnode.com", "hashnode.dev"),
    title=_title_chain("h1.blog-title"),
    description=_description_chain(),
    author=(css_text(".author-name"), meta("author")),
    publish_date=(
        css_attr("time", "datetime"),
        css_text(".publish-date"),
        meta_property("article:published_time"),
    ),
    reading_time=(css_text(".reading-time"),),
    containers=(".blog-content-wrapper", "#post-content-wrapper", ".post-content", "article"),
    tag_selector=".tag, a[href*='/tag/']",
)

SUBSTACK = ArticlePlatform(
    name="Substack",
    domains=("substack.com",),
    title=_title_chain("h1.post-title", ".post-title"),
    description=_description_chain(".subtitle"),
    author=(css_text(".byline-names"), css_text(".author-name"), meta("author")),
    publish_date=(
        css_attr("time", "datetime"),
        css_text(".post-date"),
        meta_property("article:published_time"),
    ),
    reading_time=(),
    containers=(".available-content", ".body.markup", ".body", ".post-content", "article"),
)

ARTICLE_PLATFORMS: tuple[ArticlePlatform, ...] = (MEDIUM, DEVTO, HASHNODE, SUBSTACK)


def find_platform(url: str) -> ArticlePlatform | None:
    """Return the article platform hosting *url*, if it is a known one."""
    host, _path = split_url(url)
    for platform in ARTICLE_PLATFORMS:
        if host_matches(host, platform.domains):
            return platform
    return None


def article_body(soup: BeautifulSoup, containers: tuple[str, ...]) -> str:
    """Block text from the first container yielding more than 100 characters.

    Falls back to whole-document text when no container qualifies.
    """
    for selector in containers:
        blocks: list[str] = []
        for container in soup.select(selector):
            blocks.extend(block_texts(container))
        text = "\n\n".join(blocks)
        if len(text) > MIN_CONTAINER_TEXT:
            return text
    return document_text(soup)


class ArticleStrategy:
    """Single GET, then platform-specific fallback chains for every field."""

    def __init__(self, platform: ArticlePlatform) -> None:
        self.platform = platform
        self.name = f"article:{platform.name.lower()}"

    async def extract(
        self,
        url: str,
        link_type: LinkType,
        options: ScrapeOptions,
        fetcher: FetcherProtocol,
    ) -> ExtractedDocument:
        html = await fetcher.fetch(
            url,
            timeout=options.timeout_seconds,
            follow_redirects=options.follow_redirects,
            headers=BROWSER_HEADERS,
        )
        with parse_guard(self.name, url):
            soup = parse_html(html)
            platform = self.platform
            tags = collect_tags(soup, platform.tag_selector, limit=MAX_TAGS)
            document = ExtractedDocument(
                url=url,
                type=link_type,
                title=first_match(soup, platform.title),
                description=first_match(soup, platform.description),
                body_text=article_body(soup, platform.containers),
                metadata=DocumentMetadata(
                    author=first_match(soup, platform.author) or None,
                    publish_date=first_match(soup, platform.publish_date) or None,
                    reading_time=first_match(soup, platform.reading_time) or None,
                    tags=tags or None,
                    platform=platform.name,
                    language=page_language(soup),
                ),
            )
        log.debug("article_extracted", platform=platform.name, url=url)
        return document
