"""Tool handler for detect_links.

Finds every http(s) URL in a block of text and classifies it. Pure and
synchronous underneath; no network, cache or MCP imports. server.py handles
the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from linkcontext.classifier import classify_link
from linkcontext.detector import detect_links
from linkcontext.errors import ErrorCode, LinkContextError
from linkcontext.models.tools import DetectedLinkOutput, DetectLinksInput, DetectLinksOutput

if TYPE_CHECKING:
    from linkcontext.state import AppState


async def handle(text: str, state: AppState) -> dict:
    """Handle a detect_links tool call."""
    log = structlog.get_logger().bind(tool="detect_links")
    log.info("handler_called", text_length=len(text) if isinstance(text, str) else None)

    try:
        validated = DetectLinksInput(text=text)
    except ValueError as exc:
        raise LinkContextError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide the text to scan as a string (max 100,000 chars).",
            recoverable=False,
        ) from exc

    links = []
    for detected in detect_links(validated.text):
        classification = classify_link(detected.url)
        links.append(
            DetectedLinkOutput(
                url=detected.url,
                type=classification.type,
                confidence=classification.confidence,
                position=detected.position,
            )
        )
    log.info("detect_complete", total_found=len(links))

    output = DetectLinksOutput(links=links, total_found=len(links))
    return output.model_dump(mode="json")
