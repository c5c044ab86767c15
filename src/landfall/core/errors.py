"""
Error taxonomy for landfall.

Every failure surfaced by the writer is a ``SyncError`` carrying one of three
kinds. Callers branch on ``error.kind`` rather than on the exception class:

- VALIDATION: user-fixable precondition failures (missing reference without
  --force, bad destination URL, interactive credential prompting disabled)
- EXECUTION: the underlying version-control command failed
- IO: filesystem failures while snapshotting, copying or cleaning up

The underlying exception, when there is one, is chained via ``raise ... from``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error kinds."""

    VALIDATION = "validation"
    EXECUTION = "execution"
    IO = "io"


class SyncError(Exception):
    """Base exception for every classified landfall failure."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def validation(cls, message: str) -> SyncError:
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def execution(cls, message: str) -> SyncError:
        return cls(ErrorKind.EXECUTION, message)

    @classmethod
    def io(cls, message: str) -> SyncError:
        return cls(ErrorKind.IO, message)


class CommandError(SyncError):
    """A version-control command exited unsuccessfully."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(ErrorKind.EXECUTION, message)
        self.command = command
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}\n{self.stderr}"
        return self.message


class UnresolvedReferenceError(CommandError):
    """Raised by ``pull`` when the requested reference does not exist remotely."""

    pass


class EmptyChangeError(SyncError):
    """The working directory already matches the destination."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.VALIDATION, message)
