"""Error taxonomy for request dispatch and credential handling."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Classification of a failed dispatch."""

    TRANSPORT = "transport"
    REJECTED = "rejected"
    DECODE = "decode"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


class EveLibError(Exception):
    """Base class for all errors raised by the library."""


class DispatchError(EveLibError):
    """A request could not be turned into a decoded result.

    Attributes:
        kind: Failure classification
        url: Final request URL (parameters included)
        status_code: HTTP status, when the remote answered at all
        cause: Underlying exception, if any
    """

    kind: FailureKind = FailureKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause

    @property
    def is_transient(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self.kind in (FailureKind.TRANSPORT, FailureKind.TIMEOUT)

    def __reduce__(self) -> tuple[object, ...]:
        return (type(self), (str(self), self.url, self.status_code, self.cause))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, url={self.url!r}, "
            f"status_code={self.status_code!r})"
        )


class TransportFailure(DispatchError):
    """Connection-level failure or a non-success HTTP status other than 403."""

    kind = FailureKind.TRANSPORT


class RejectedCredential(DispatchError):
    """The remote service explicitly denied the credential (HTTP 403)."""

    kind = FailureKind.REJECTED


class DecodeFailure(DispatchError):
    """The response body did not match the expected shape."""

    kind = FailureKind.DECODE


class DispatchTimeout(DispatchError):
    """The dispatch deadline expired before a result was available."""

    kind = FailureKind.TIMEOUT


class DispatchCancelled(DispatchError):
    """The dispatcher was closed before the request finished."""

    kind = FailureKind.CANCELLED


class UnexpectedFailure(DispatchError):
    """Any other failure at the dispatch boundary."""

    kind = FailureKind.UNEXPECTED


class InvalidApiKeyError(EveLibError):
    """Raised when reading key data from a key the remote service rejected."""

    def __init__(self, key_id: int) -> None:
        super().__init__(f"API key {key_id} was rejected; key data cannot be loaded")
        self.key_id = key_id
