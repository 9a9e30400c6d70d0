from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from linkcontext.models.document import LinkType
from linkcontext.models.scrape import BatchResult

# ---------------------------------------------------------------------------
# detect_links
# ---------------------------------------------------------------------------


class DetectLinksInput(BaseModel):
    text: str = Field(max_length=100_000)


class DetectedLinkOutput(BaseModel):
    url: str
    type: LinkType
    confidence: float
    position: int


class DetectLinksOutput(BaseModel):
    links: list[DetectedLinkOutput]
    total_found: int


# ---------------------------------------------------------------------------
# scrape_links
# ---------------------------------------------------------------------------


class ScrapeLinksInput(BaseModel):
    urls: list[str] = Field(min_length=1, max_length=20)
    requester_id: str = Field(min_length=1, max_length=200)
    timeout_seconds: float | None = Field(default=None, gt=0, le=120)
    max_content_length: int | None = Field(default=None, ge=1, le=100_000)
    follow_redirects: bool | None = None
    cache_results: bool | None = None
    cache_ttl_hours: int | None = Field(default=None, ge=0, le=8760)

    @field_validator("requester_id")
    @classmethod
    def strip_requester_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("requester_id must not be blank")
        return v


class ScrapeLinksOutput(BatchResult):
    scraped_at: str
