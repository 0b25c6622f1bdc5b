"""Success/failure result types returned by every client-side step."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a failed step."""
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    BUSINESS = "business"
    STRUCTURAL = "structural"
    INPUT = "input"


@dataclass(frozen=True)
class Success(Generic[T]):
    """A step that produced a value."""

    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    """A step that failed; error is the wire code, message is human readable."""

    kind: ErrorKind
    error: str
    message: str
    status_code: Optional[int] = None
    ok: Literal[False] = False

    def describe(self) -> str:
        """Literal message with its code, as shown to the user."""
        if self.message and self.message != self.error:
            return f"{self.message} (Code: {self.error})"
        return self.error


StepResult = Success | Failure


# Codes the server reports for problems found in the uploaded bytes rather than the request.
STRUCTURAL_ERROR_CODES = frozenset({
    "INVALID_PSD_SIGNATURE",
    "PSD_PARSE_FAILED",
    "SIZE_MISMATCH",
    "INVALID_DATA_URL",
})


def business_failure(body: dict, default_error: str, status_code: Optional[int] = None) -> Failure:
    """
    Build a Failure from a `success: false` response body.

    Args:
        body: Decoded JSON response
        default_error: Code to use when the body carries none
        status_code: HTTP status of the response

    Returns:
        Failure classified as structural or business by its code
    """
    error = str(body.get('error') or default_error)
    message = str(body.get('detail') or body.get('message') or error)
    kind = ErrorKind.STRUCTURAL if error in STRUCTURAL_ERROR_CODES else ErrorKind.BUSINESS
    return Failure(kind=kind, error=error, message=message, status_code=status_code)
