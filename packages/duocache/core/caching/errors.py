"""Error taxonomy for cache operations.

Every failure surfaced by the entry store is a CacheError carrying one of the
stable ErrorCode identifiers, plus whatever partial context (record, stream)
was obtained before the failing step.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from duocache.core.caching.models import CacheEntry
    from duocache.core.caching.stream import PayloadStream


class ErrorCode(str, Enum):
    """Stable error identifiers surfaced to callers."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    EXPIRED = "EXPIRED"
    INVALID_INPUT = "INVALID_INPUT"
    IO_ERROR = "IO_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


class CacheErrorData(BaseModel):
    """Structured data for cache errors.

    Args:
        code: Stable error identifier
        message: Human-readable error description
        path: File the failing step was operating on (if any)
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    code: ErrorCode
    message: str
    path: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        data: Structured error data (CacheErrorData)
        code: Stable error identifier
        message: Human-readable error description
        path: File involved in the failure
        cause: Original exception
        record: Metadata record obtained before the failure, if any
        stream: Payload stream opened before the failure, if any
    """

    code: ErrorCode = ErrorCode.IO_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        path: Any = None,
        cause: BaseException | None = None,
        record: CacheEntry | None = None,
        stream: PayloadStream | None = None,
    ) -> None:
        self.data = CacheErrorData(
            code=code or type(self).code,
            message=message,
            path=str(path) if path is not None else None,
            cause=cause,
        )
        self.code = self.data.code
        self.message = self.data.message
        self.path = self.data.path
        self.cause = self.data.cause
        self.record = record
        self.stream = stream

        super().__init__(str(self))

    def __str__(self) -> str:
        """Format error for logging and display."""
        parts = [f"[{self.code.value}] {self.message}"]
        if self.path:
            parts.append(f"path={self.path}")
        return " | ".join(parts)


class NotFoundError(CacheError):
    """Entry or file does not exist."""

    code = ErrorCode.NOT_FOUND


class AlreadyExistsError(CacheError):
    """Override disabled and the entry already exists."""

    code = ErrorCode.ALREADY_EXISTS


class ExpiredError(CacheError):
    """Entry exists but its ttl has elapsed. Record and stream stay attached."""

    code = ErrorCode.EXPIRED


class InvalidInputError(CacheError):
    """Argument rejected before any I/O took place."""

    code = ErrorCode.INVALID_INPUT


class CacheIOError(CacheError):
    """Disk, permission or missing-directory failure."""

    code = ErrorCode.IO_ERROR


class ParseError(CacheError):
    """Metadata file exists but is not a valid record."""

    code = ErrorCode.PARSE_ERROR


class PartialWriteError(CacheError):
    """Metadata was persisted with ``file.saved = false`` after the payload write failed.

    The code mirrors the payload failure (ALREADY_EXISTS or IO_ERROR) and the
    persisted record is attached.
    """


def from_os_error(exc: OSError, path: Any = None, **context: Any) -> CacheError:
    """Translate an OSError into the matching CacheError subclass."""
    message = exc.strerror or str(exc)
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(message, path=path, cause=exc, **context)
    if isinstance(exc, FileExistsError):
        return AlreadyExistsError(message, path=path, cause=exc, **context)
    return CacheIOError(message, path=path, cause=exc, **context)
