"""Exception hierarchy raised inside the resolvers.

Resolvers convert these into :mod:`video_resolver.models` result values at
their public boundary; only code below that boundary should catch them.
"""

from __future__ import annotations

from .models import ErrorKind


class ResolverError(RuntimeError):
    kind: ErrorKind = ErrorKind.NOT_FOUND


class UnsupportedPlatform(ResolverError):
    kind = ErrorKind.UNSUPPORTED_PLATFORM


class MissingCredential(ResolverError):
    kind = ErrorKind.MISSING_CREDENTIAL


class TransportError(ResolverError):
    """A network, automation or extractor call failed."""

    kind = ErrorKind.TRANSPORT_ERROR


class NotFound(ResolverError):
    kind = ErrorKind.NOT_FOUND


class ProcessFailure(ResolverError):
    """External process exited non-zero or left no usable output."""

    kind = ErrorKind.PROCESS_FAILURE

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "MissingCredential",
    "NotFound",
    "ProcessFailure",
    "ResolverError",
    "TransportError",
    "UnsupportedPlatform",
]
