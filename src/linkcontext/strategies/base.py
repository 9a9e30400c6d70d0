"""Building blocks shared by the extraction strategies.

Field extraction is expressed as fallback chains: ordered tuples of small
extractor callables, each taking the parsed document and returning a string
or ``None``. ``first_match`` walks a chain and keeps the first non-empty
result, so no strategy needs nested conditionals for its selectors.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol

import structlog
from bs4 import BeautifulSoup, Tag

from linkcontext.errors import ErrorCode, LinkContextError

if TYPE_CHECKING:
    from linkcontext.models.document import ExtractedDocument, LinkType
    from linkcontext.models.scrape import ScrapeOptions
    from linkcontext.protocols import FetcherProtocol

log = structlog.get_logger()

Extractor = Callable[[BeautifulSoup], str | None]
Chain = tuple[Extractor, ...]

BLOCK_SELECTOR = "p, h1, h2, h3, h4, h5, h6, blockquote, li"
NOISE_SELECTOR = (
    "script, style, noscript, nav, header, footer, aside, "
    ".sidebar, .navigation, .menu, .ads, .advertisement"
)


class ExtractionStrategy(Protocol):
    """A platform-specific fetch + parse pipeline."""

    name: str

    async def extract(
        self,
        url: str,
        link_type: LinkType,
        options: ScrapeOptions,
        fetcher: FetcherProtocol,
    ) -> ExtractedDocument: ...


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


def css_text(selector: str) -> Extractor:
    """Text of the first element matching *selector*."""

    def extract(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        return element.get_text(" ", strip=True) if element is not None else None

    return extract


def css_attr(selector: str, attribute: str) -> Extractor:
    """Attribute value of the first element matching *selector*."""

    def extract(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        if element is None:
            return None
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    return extract


def meta(name: str) -> Extractor:
    return css_attr(f'meta[name="{name}"]', "content")


def meta_property(prop: str) -> Extractor:
    return css_attr(f'meta[property="{prop}"]', "content")


def title_tag(strip_suffix: str | None = None) -> Extractor:
    """Raw ``<title>`` text, minus a platform suffix such as ``" | Medium"``."""

    def extract(soup: BeautifulSoup) -> str | None:
        if soup.title is None:
            return None
        text = soup.title.get_text(" ", strip=True)
        if strip_suffix and text.endswith(strip_suffix):
            text = text[: -len(strip_suffix)]
        return text

    return extract


def literal(value: str) -> Extractor:
    return lambda _soup: value


def first_match(soup: BeautifulSoup, chain: Sequence[Extractor]) -> str:
    """Run *chain* in order and return the first non-empty, stripped result."""
    for extractor in chain:
        value = extractor(soup)
        if value and value.strip():
            return value.strip()
    return ""


# ---------------------------------------------------------------------------
# Document helpers
# ---------------------------------------------------------------------------


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def page_language(soup: BeautifulSoup) -> str:
    html_tag = soup.find("html")
    if isinstance(html_tag, Tag):
        lang = html_tag.get("lang")
        if isinstance(lang, str) and lang.strip():
            return lang.strip()
    return "en"


def block_texts(container: Tag, *, min_length: int = 1) -> list[str]:
    """Text of every block element under *container* at least *min_length* long."""
    texts: list[str] = []
    for element in container.select(BLOCK_SELECTOR):
        text = element.get_text(" ", strip=True)
        if len(text) >= min_length:
            texts.append(text)
    return texts


def document_text(soup: BeautifulSoup) -> str:
    root = soup.body if soup.body is not None else soup
    return root.get_text("\n", strip=True)


def collect_tags(soup: BeautifulSoup, selector: str | None, limit: int = 5) -> list[str]:
    """Distinct tag labels from *selector*, leading ``#`` removed, capped at *limit*."""
    if selector is None:
        return []
    tags: list[str] = []
    for element in soup.select(selector):
        label = element.get_text(" ", strip=True).lstrip("#").strip()
        if label and label not in tags:
            tags.append(label)
        if len(tags) == limit:
            break
    return tags


@contextmanager
def parse_guard(strategy: str, url: str) -> Iterator[None]:
    """Turn unexpected parser errors into PARSE_FAILURE.

    LinkContextError passes through untouched; anything else raised while
    parsing means the page could not be understood.
    """
    try:
        yield
    except LinkContextError:
        raise
    except Exception as exc:
        log.warning("parse_failed", strategy=strategy, url=url, exc_info=True)
        raise LinkContextError(
            code=ErrorCode.PARSE_FAILURE,
            message=f"Could not parse content from {url}: {exc}",
            suggestion="The page layout may be unsupported.",
            recoverable=False,
        ) from exc
