from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_REQUEST = "INVALID_REQUEST"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    UPSTREAM_FORMAT_FAILURE = "UPSTREAM_FORMAT_FAILURE"
    PARSE_FAILURE = "PARSE_FAILURE"
    CACHE_WRITE_FAILURE = "CACHE_WRITE_FAILURE"
    CANCELLED = "CANCELLED"


class LinkContextError(Exception):
    """Raised for all expected failure conditions.

    Inside a batch, the orchestrator catches it at the strategy boundary and
    turns it into an error document for that URL. At the tool layer it is
    caught by server.py and serialised into the MCP error response.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
