"""Extraction strategies and URL → strategy dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

from linkcontext.models.document import LinkType
from linkcontext.strategies.articles import ARTICLE_PLATFORMS, ArticleStrategy, find_platform
from linkcontext.strategies.base import ExtractionStrategy
from linkcontext.strategies.repository import RepositoryStrategy
from linkcontext.strategies.website import WebsiteStrategy

if TYPE_CHECKING:
    from linkcontext.config import FetcherSettings


class StrategyDispatcher:
    """Picks the strategy for a classified URL.

    Source repositories go to the repository strategy, known article
    platforms to their platform strategy, everything else to the generic
    website strategy.
    """

    def __init__(
        self,
        *,
        repository: RepositoryStrategy | None = None,
        website: WebsiteStrategy | None = None,
    ) -> None:
        self.repository = repository or RepositoryStrategy()
        self.website = website or WebsiteStrategy()
        self.articles = {p.name: ArticleStrategy(p) for p in ARTICLE_PLATFORMS}

    @classmethod
    def from_settings(cls, settings: FetcherSettings) -> StrategyDispatcher:
        return cls(
            repository=RepositoryStrategy(
                readme_timeout=settings.readme_timeout_seconds,
                probe_timeout=settings.probe_timeout_seconds,
            ),
        )

    def select(self, url: str, link_type: LinkType) -> ExtractionStrategy:
        if link_type is LinkType.SOURCE_REPO:
            return self.repository
        platform = find_platform(url)
        if platform is not None:
            return self.articles[platform.name]
        return self.website


__all__ = [
    "ExtractionStrategy",
    "RepositoryStrategy",
    "ArticleStrategy",
    "WebsiteStrategy",
    "StrategyDispatcher",
]
