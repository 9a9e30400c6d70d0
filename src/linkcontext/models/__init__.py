from __future__ import annotations

from linkcontext.models.cache import DocumentCacheEntry
from linkcontext.models.document import (
    DetectedLink,
    DocumentMetadata,
    ExtractedDocument,
    LinkClassification,
    LinkType,
    Manifest,
    ProjectFile,
    RawManifest,
    RepositoryMetadata,
    StructuredManifest,
)
from linkcontext.models.scrape import BatchResult, BatchSummary, ScrapeOptions
from linkcontext.models.tools import (
    DetectedLinkOutput,
    DetectLinksInput,
    DetectLinksOutput,
    ScrapeLinksInput,
    ScrapeLinksOutput,
)

__all__ = [
    # documents
    "LinkType",
    "DetectedLink",
    "LinkClassification",
    "DocumentMetadata",
    "RepositoryMetadata",
    "ProjectFile",
    "Manifest",
    "StructuredManifest",
    "RawManifest",
    "ExtractedDocument",
    # batches
    "ScrapeOptions",
    "BatchSummary",
    "BatchResult",
    # cache
    "DocumentCacheEntry",
    # tools
    "DetectLinksInput",
    "DetectLinksOutput",
    "DetectedLinkOutput",
    "ScrapeLinksInput",
    "ScrapeLinksOutput",
]
