"""Generic website strategy, used for every URL without a dedicated platform."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from linkcontext.models.document import DocumentMetadata, ExtractedDocument
from linkcontext.strategies.base import (
    NOISE_SELECTOR,
    block_texts,
    css_text,
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
    from bs4 import BeautifulSoup, Tag

    from linkcontext.models.document import LinkType
    from linkcontext.models.scrape import ScrapeOptions
    from linkcontext.protocols import FetcherProtocol

CONTENT_CONTAINERS: tuple[str, ...] = (
    # Semantic HTML5
    "article",
    "main article",
    '[role="main"] article',
    # Common blog/article containers
    ".post-content",
    ".entry-content",
    ".article-content",
    ".content-body",
    ".story-content",
    # Generic content containers
    ".content",
    ".main-content",
    "#content",
    "#main-content",
    "main",
    ".main",
    "#main",
    "body",
)

MIN_BLOCK_LENGTH = 21  # blocks must be longer than 20 characters
MIN_CONTAINER_TEXT = 200
MIN_PARAGRAPH_LENGTH = 31  # paragraphs must be longer than 30 characters
DESCRIPTION_FALLBACK_LENGTH = 200


def _first_paragraph(soup: BeautifulSoup) -> str | None:
    paragraph = soup.find("p")
    if paragraph is None:
        return None
    return paragraph.get_text(" ", strip=True)[:DESCRIPTION_FALLBACK_LENGTH]


_TITLE_CHAIN = (title_tag(), css_text("h1"), literal("No title found"))
_DESCRIPTION_CHAIN = (
    meta("description"),
    meta_property("og:description"),
    _first_paragraph,
    literal("No description available"),
)
_AUTHOR_CHAIN = (meta("author"), meta_property("article:author"), css_text(".author"))


def _without_noise(element: Tag) -> Tag:
    """Detached copy of *element* with navigation, ads, scripts and styles removed."""
    clone = copy.copy(element)
    for noise in clone.select(NOISE_SELECTOR):
        noise.decompose()
    return clone


def website_body(soup: BeautifulSoup) -> str:
    """Assemble body text through the container → paragraphs → page fallbacks."""
    for selector in CONTENT_CONTAINERS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = "\n\n".join(block_texts(_without_noise(element), min_length=MIN_BLOCK_LENGTH))
        if len(text) > MIN_CONTAINER_TEXT:
            return text

    paragraphs = "\n\n".join(
        text
        for p in soup.find_all("p")
        if len(text := p.get_text(" ", strip=True)) >= MIN_PARAGRAPH_LENGTH
    )
    if paragraphs:
        return paragraphs

    root = soup.body if soup.body is not None else soup
    return _without_noise(root).get_text("\n", strip=True)


class WebsiteStrategy:
    """Generic container heuristics, fetched with the client's own User-Agent."""

    name = "website"

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
        )
        with parse_guard(self.name, url):
            soup = parse_html(html)
            return ExtractedDocument(
                url=url,
                type=link_type,
                title=first_match(soup, _TITLE_CHAIN),
                description=first_match(soup, _DESCRIPTION_CHAIN),
                body_text=website_body(soup),
                metadata=DocumentMetadata(
                    author=first_match(soup, _AUTHOR_CHAIN) or None,
                    language=page_language(soup),
                ),
            )
