"""Documents produced by the extraction pipeline."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from linkcontext.errors import ErrorCode


class LinkType(StrEnum):
    SOURCE_REPO = "source_repo"
    ARTICLE = "article"
    DOCUMENTATION = "documentation"
    SOCIAL = "social"
    VIDEO = "video"
    QA = "qa"
    WEBSITE = "website"


class DetectedLink(BaseModel):
    """A URL substring found in free text."""

    url: str
    position: int  # 0-based character offset of the match


class LinkClassification(BaseModel):
    url: str
    type: LinkType
    confidence: float = Field(ge=0.0, le=1.0)  # Advisory only


class StructuredManifest(BaseModel):
    """A recognised project manifest parsed into a typed record."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["structured"] = "structured"
    ecosystem: str  # "npm" | "python" | "cargo" | "go"
    name: str | None = None
    version: str | None = None
    description: str | None = None
    dependencies: list[str] = []


class RawManifest(BaseModel):
    """A project file kept as opaque text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    text: str


Manifest = Annotated[StructuredManifest | RawManifest, Field(discriminator="kind")]


class ProjectFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # "json" | "toml" | "text" | "docker"
    description: str
    content_preview: str  # First 500 characters
    size: int  # Byte length of the full file
    manifest: Manifest


class RepositoryMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    stars: int = 0
    forks: int = 0
    language: str | None = None
    readme: str = ""
    topics: list[str] = []
    project_files: dict[str, ProjectFile] = {}
    default_branch: str = "main"


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str | None = None
    language: str | None = None
    tags: list[str] | None = None
    platform: str | None = None
    publish_date: str | None = None
    reading_time: str | None = None


class ExtractedDocument(BaseModel):
    """Result of scraping a single URL.

    Frozen: the URL (and every other field) is fixed once created. Derived
    documents, e.g. after normalisation, are built with ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    url: str
    type: LinkType
    title: str
    description: str = ""
    body_text: str = ""
    metadata: DocumentMetadata = DocumentMetadata()
    repository: RepositoryMetadata | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    status: Literal["success", "error"] = "success"
    error_code: ErrorCode | None = None
    error_message: str | None = None

    @classmethod
    def failure(
        cls,
        url: str,
        code: ErrorCode,
        message: str,
        link_type: LinkType = LinkType.WEBSITE,
    ) -> ExtractedDocument:
        """Build the error document that stands in for a URL that failed."""
        return cls(
            url=url,
            type=link_type,
            title="Error",
            description="Failed to scrape content",
            body_text="",
            status="error",
            error_code=code,
            error_message=message,
        )
