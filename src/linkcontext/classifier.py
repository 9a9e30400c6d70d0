"""Link classification.

A URL is mapped to a content type by walking a fixed-priority rule table;
the first matching rule wins. Classification looks only at the URL string,
so the same URL always yields the same result.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlparse

from linkcontext.models.document import LinkClassification, LinkType

EXACT_MATCH_CONFIDENCE = 0.95
HEURISTIC_MATCH_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.5

# Repository pages live on the bare host only; subdomains such as docs.github.com
# and gist.github.com are other products.
SOURCE_REPO_HOSTS = ("github.com", "www.github.com")
ARTICLE_DOMAINS = ("medium.com", "dev.to", "hashnode.com", "hashnode.dev", "substack.com")
SOCIAL_DOMAINS = ("linkedin.com", "twitter.com", "x.com")
VIDEO_DOMAINS = ("youtube.com", "youtu.be", "vimeo.com")
QA_DOMAINS = ("stackoverflow.com", "stackexchange.com")


def host_matches(host: str, domains: tuple[str, ...]) -> bool:
    """True if *host* is one of *domains* or a subdomain of one."""
    return any(host == d or host.endswith("." + d) for d in domains)


def _domain_rule(domains: tuple[str, ...]) -> Callable[[str, str], bool]:
    return lambda host, _path: host_matches(host, domains)


def _host_rule(hosts: tuple[str, ...]) -> Callable[[str, str], bool]:
    return lambda host, _path: host in hosts


def _is_blog(host: str, path: str) -> bool:
    return host.startswith("blog.") or "/blog/" in path


def _is_documentation(host: str, _path: str) -> bool:
    return "docs." in host or "documentation." in host


@dataclass(frozen=True)
class _Rule:
    link_type: LinkType
    confidence: float
    matches: Callable[[str, str], bool]


_RULES: tuple[_Rule, ...] = (
    _Rule(LinkType.SOURCE_REPO, EXACT_MATCH_CONFIDENCE, _host_rule(SOURCE_REPO_HOSTS)),
    _Rule(LinkType.ARTICLE, EXACT_MATCH_CONFIDENCE, _domain_rule(ARTICLE_DOMAINS)),
    _Rule(LinkType.ARTICLE, HEURISTIC_MATCH_CONFIDENCE, _is_blog),
    _Rule(LinkType.DOCUMENTATION, HEURISTIC_MATCH_CONFIDENCE, _is_documentation),
    _Rule(LinkType.SOCIAL, EXACT_MATCH_CONFIDENCE, _domain_rule(SOCIAL_DOMAINS)),
    _Rule(LinkType.VIDEO, EXACT_MATCH_CONFIDENCE, _domain_rule(VIDEO_DOMAINS)),
    _Rule(LinkType.QA, EXACT_MATCH_CONFIDENCE, _domain_rule(QA_DOMAINS)),
)


def split_url(url: str) -> tuple[str, str]:
    """Return ``(lowercased host, path)``; empty strings if *url* does not parse."""
    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").rstrip(".")
    except ValueError:
        return "", ""
    return host.lower(), parsed.path


def classify_link(url: str) -> LinkClassification:
    """Classify *url* against the rule table."""
    host, path = split_url(url)
    if host:
        for rule in _RULES:
            if rule.matches(host, path):
                return LinkClassification(url=url, type=rule.link_type, confidence=rule.confidence)
    return LinkClassification(url=url, type=LinkType.WEBSITE, confidence=DEFAULT_CONFIDENCE)
