"""
Error types raised by the MsGine client.

Every failure surfaced by the client derives from MsGineError, so callers can
catch everything at once or tell validation failures apart from API failures.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


class MsGineError(Exception):
    """Base class for all errors raised by the client"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApiError(MsGineError):
    """
    A failure reported by the API or by the network layer.

    Attributes:
        status_code: HTTP status of the response, 408 for a request timeout,
            0 for a network failure where no response was received
        code: Machine readable error code (e.g. 'REQUEST_TIMEOUT')
        details: Extra details from the API error envelope
        request_id: Request id from the API error envelope
    """

    def __init__(self, message: str, status_code: int, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details
        self.request_id = request_id

    def __repr__(self) -> str:
        return (f"ApiError(message={self.message!r}, status_code={self.status_code}, "
                f"code={self.code!r}, request_id={self.request_id!r})")


@dataclass(frozen=True)
class ValidationIssue:
    """A single rule violation in an outbound payload"""

    path: Tuple[str, ...]
    message: str


class ValidationError(MsGineError):
    """
    An outbound payload failed validation. Raised before any network call.

    Attributes:
        issues: Every violated rule, in field order
        index: Position of the offending payload when raised from a batch
    """

    def __init__(self, message: str, issues: List[ValidationIssue], index: Optional[int] = None):
        super().__init__(message)
        self.issues = list(issues)
        self.index = index

    def __str__(self) -> str:
        if not self.issues:
            return self.message
        summary = "; ".join(
            f"{'.'.join(issue.path) or '<payload>'}: {issue.message}" for issue in self.issues
        )
        return f"{self.message} ({summary})"
