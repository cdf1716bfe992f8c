"""
Exception hierarchy for tubegraph.

Every failure the library surfaces derives from TubeGraphError so callers
can catch the whole family in one place, while still distinguishing the
conditions that matter for control flow:

- MalformedDocumentError: structure is broken, never retryable
- VariantMismatchError: a node is not of the variant the caller asserted
- EndOfSequenceError: a cursor was advanced past its last page
- NoMatchingFormatError: no resource variant satisfied the constraints
- TransportError: the remote call itself failed (may be retryable)
- ServiceError: the remote call succeeded but the document reports an error

An unknown discriminator is deliberately NOT an error: the builder falls
back to a PassthroughNode instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tubegraph.formats.variant import ResourceVariant


class TubeGraphError(Exception):
    """Base exception for all tubegraph errors."""

    retryable: bool = False

    def __init__(self, message: str, *, info: Any = None):
        super().__init__(message)
        self.info = info


# =============================================================================
# Document / graph errors
# =============================================================================


class MalformedDocumentError(TubeGraphError):
    """Raised when a raw document is missing a discriminator or a required field."""

    def __init__(
        self,
        message: str,
        *,
        tag: str | None = None,
        path: str | None = None,
        info: Any = None,
    ):
        super().__init__(message, info=info)
        self.tag = tag
        self.path = path

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.tag:
            parts.append(f"(tag={self.tag})")
        if self.path:
            parts.append(f"(path={self.path})")
        return " ".join(parts)


class VariantMismatchError(TubeGraphError):
    """Raised when a node does not belong to the asserted set of variants."""

    def __init__(self, actual: str, expected: Sequence[str], *, info: Any = None):
        super().__init__(
            f"Type mismatch, got {actual} but expected {' | '.join(expected)}",
            info=info,
        )
        self.actual = actual
        self.expected = tuple(expected)


class RegistryError(TubeGraphError):
    """Raised on invalid registry operations (duplicate or invalid schema)."""


# =============================================================================
# Pagination errors
# =============================================================================


class EndOfSequenceError(TubeGraphError):
    """Raised when advancing a cursor that has already been exhausted."""

    def __init__(self, message: str = "No more pages to fetch", *, pages_fetched: int = 0):
        super().__init__(message)
        self.pages_fetched = pages_fetched


class ConcurrentAdvanceError(TubeGraphError):
    """Raised when a cursor is advanced while a previous advance is still in flight."""


# =============================================================================
# Format errors
# =============================================================================


class NoMatchingFormatError(TubeGraphError):
    """Raised when no resource variant satisfies the selection constraints."""

    def __init__(
        self,
        message: str,
        *,
        candidates: Sequence[ResourceVariant] = (),
        constraints: Any = None,
    ):
        super().__init__(message, info=constraints)
        self.candidates = tuple(candidates)
        self.constraints = constraints

    def __str__(self) -> str:
        return f"{self.args[0]} (candidates={len(self.candidates)})"


class LocatorError(TubeGraphError):
    """Raised when a variant's playable URL cannot be resolved."""


# =============================================================================
# Remote errors
# =============================================================================


class TransportError(TubeGraphError):
    """
    Raised when the remote call fails (network, timeout, HTTP status).

    Timeouts, network errors, 429 and 5xx are retryable; other statuses are not.
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        retryable: bool = False,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
        self.response_body = response_body
        self.retryable = retryable
        self.retry_after = retry_after

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.endpoint:
            parts.insert(0, f"[{self.endpoint}]")
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)


class ServiceError(TubeGraphError):
    """
    Raised when the document itself encodes an error status.

    e.g. a resource that is unavailable. Never retryable.
    """

    def __init__(
        self,
        message: str,
        *,
        status: str | None = None,
        reason: str | None = None,
        info: Any = None,
    ):
        super().__init__(message, info=info)
        self.status = status
        self.reason = reason

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.status:
            parts.append(f"(status={self.status})")
        if self.reason:
            parts.append(f"- {self.reason}")
        return " ".join(parts)
