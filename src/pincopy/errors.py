"""
Error taxonomy for replication runs.

Every fatal condition derives from PincopyError so the CLI can turn any of
them into a single message and a non-zero exit code. Destination conflicts
are not errors unless escalated; see ConflictError.
"""

from __future__ import annotations

from typing import Optional


class PincopyError(Exception):
    """Base class for every fatal replication failure."""


class ConfigurationError(PincopyError):
    """Missing or malformed input detected before any network activity."""


class TransportError(PincopyError):
    """The store was unreachable or answered with something unparseable."""


class StoreApiError(TransportError):
    """The store answered with an explicit API error body.

    Args:
        message: The ``Message`` field reported by the store.
        command: RPC command that failed (e.g. ``pin/ls``).
        status_code: HTTP status of the response, if any.
    """

    def __init__(
        self,
        message: str,
        command: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        self.message = message
        self.command = command
        self.status_code = status_code
        prefix = f"{command}: " if command else ""
        super().__init__(f"{prefix}{message}")


class PolicyViolation(PincopyError):
    """Unpinned source entries exist and the unpinned rule is ``ban``."""


class ConflictError(PincopyError):
    """A destination entry holds different content and conflicts are fatal."""

    def __init__(self, path: str, existing_hash: str, expected_hash: str) -> None:
        self.path = path
        self.existing_hash = existing_hash
        self.expected_hash = expected_hash
        super().__init__(
            f"{path} already exists with hash {existing_hash}, "
            f"expected {expected_hash}"
        )


class StreamError(PincopyError):
    """Downloading a file to the local mirror failed part way through.

    The partially written file is left on disk.
    """

    def __init__(self, path: str, bytes_written: int, reason: str) -> None:
        self.path = path
        self.bytes_written = bytes_written
        super().__init__(
            f"Failed streaming {path} after {bytes_written} bytes: {reason}"
        )


class LocalWriteError(PincopyError):
    """A directory of the local mirror could not be created."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot create local directory {path}: {reason}")
