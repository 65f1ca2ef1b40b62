"""
Content store clients -- the only code that talks to a node.

ContentStore is the boundary the replication components program against.
HttpContentStore implements it over the Kubo HTTP RPC API: every command
is a POST to ``<api_url>/api/v0/<command>`` with its arguments in the
query string, and failures come back as a JSON body with a ``Message``.

Two answers the RPC API only gives as error text are turned into typed
results here: "not pinned" from ``pin/ls`` becomes PinStatus.UNPINNED and
"file does not exist" from ``files/stat`` becomes None.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional, Sequence

import requests

from .errors import StoreApiError, TransportError
from .models import Entry, PinStatus, StatResult

logger = logging.getLogger("pincopy.store")

API_PREFIX = "/api/v0"
DEFAULT_CHUNK_SIZE = 256 * 1024  # 256 KB

NOT_PINNED_MARKER = "is not pinned"
NOT_FOUND_MARKER = "file does not exist"


def is_not_pinned_message(message: str, hash_: str) -> bool:
    """Whether a ``pin/ls`` error message means *hash_* is simply unpinned."""
    return hash_ in message and NOT_PINNED_MARKER in message


def join_path(parent: str, name: str) -> str:
    """Join a namespace path and a child name with exactly one slash."""
    return f"{parent.rstrip('/')}/{name}"


class ContentStore(ABC):
    """Abstract content-addressed store with a mutable namespace."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable store description (usually the API URL)."""

    @abstractmethod
    def list_entries(self, path: str) -> list[Entry]:
        """List the direct children of *path* in long form.

        Raises:
            TransportError: If the store is unreachable or the listing is
                malformed.
        """

    @abstractmethod
    def stat(self, path: str) -> Optional[StatResult]:
        """Stat *path*; None when nothing exists there."""

    @abstractmethod
    def pin_status(self, hash_: str) -> PinStatus:
        """Report whether *hash_* is pinned on this store."""

    @abstractmethod
    def pin_add(self, hash_: str, recursive: bool = True) -> None:
        """Pin *hash_* so the garbage collector keeps it."""

    @abstractmethod
    def copy_by_hash(self, hash_: str, dest_path: str) -> None:
        """Link *dest_path* in the namespace to the content *hash_*."""

    @abstractmethod
    def make_directory(self, path: str, parents: bool = True) -> None:
        """Create *path*; an existing directory is not an error."""

    @abstractmethod
    def read_stream(
        self, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[bytes]:
        """Lazily yield the bytes stored at *path*.

        The iterator is finite and cannot be restarted part way through.
        """


class HttpContentStore(ContentStore):
    """ContentStore over the Kubo HTTP RPC API.

    Args:
        api_url: Node API address, e.g. ``https://node.example:5001``.
            A trailing ``/api/v0`` is accepted and stripped.
        username: HTTP basic auth user, if the API sits behind auth.
        password: HTTP basic auth password.
        timeout: Per-request timeout in seconds. None waits forever.
        session: Pre-built requests session (mostly for tests).
    """

    def __init__(
        self,
        api_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        base = api_url.rstrip("/")
        if base.endswith(API_PREFIX):
            base = base[: -len(API_PREFIX)]
        self._base_url = base
        self._timeout = timeout
        self._session = session or requests.Session()
        if username:
            self._session.auth = (username, password or "")

    @property
    def name(self) -> str:
        return self._base_url

    def _api_call(
        self,
        command: str,
        args: Sequence[str] = (),
        params: Optional[dict[str, Any]] = None,
        stream: bool = False,
    ) -> requests.Response:
        """Issue one RPC command and return the successful response.

        Args:
            command: RPC command path, e.g. ``files/ls``.
            args: Positional ``arg`` values, in order.
            params: Extra query parameters.
            stream: Leave the body unread for streaming.

        Raises:
            StoreApiError: The store answered with an error body.
            TransportError: The request failed or the error was unreadable.
        """
        query: list[tuple[str, str]] = [("arg", a) for a in args]
        for key, value in (params or {}).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            query.append((key, str(value)))

        url = f"{self._base_url}{API_PREFIX}/{command}"
        logger.debug("POST %s %s", url, query)
        try:
            resp = self._session.post(
                url, params=query, stream=stream, timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{command} on {self._base_url} failed: {exc}") from exc

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            finally:
                resp.close()
            message = body.get("Message") if isinstance(body, dict) else None
            if not message:
                raise TransportError(
                    f"{command} on {self._base_url}: "
                    f"{resp.status_code} {resp.text}"
                )
            raise StoreApiError(message, command=command, status_code=resp.status_code)

        return resp

    def _json(
        self,
        command: str,
        args: Sequence[str] = (),
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        resp = self._api_call(command, args, params)
        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(
                f"{command} on {self._base_url} returned unparseable JSON"
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(f"{command} returned unexpected body: {data!r}")
        return data

    def list_entries(self, path: str) -> list[Entry]:
        data = self._json("files/ls", [path], {"long": True, "U": False})
        raw_entries = data.get("Entries") or []
        if not isinstance(raw_entries, list):
            raise TransportError(f"files/ls returned unexpected Entries: {raw_entries!r}")
        return [Entry.from_api(raw) for raw in raw_entries]

    def stat(self, path: str) -> Optional[StatResult]:
        try:
            data = self._json("files/stat", [path])
        except StoreApiError as exc:
            if NOT_FOUND_MARKER in exc.message:
                return None
            raise
        return StatResult.from_api(data)

    def pin_status(self, hash_: str) -> PinStatus:
        try:
            data = self._json("pin/ls", [hash_])
        except StoreApiError as exc:
            # pin/ls has no "not pinned" answer; it fails and names the hash.
            if is_not_pinned_message(exc.message, hash_):
                logger.debug(
                    "pin/ls reported %s as unpinned via error text: %s",
                    hash_, exc.message,
                )
                return PinStatus.UNPINNED
            raise

        keys = data.get("Keys")
        if not isinstance(keys, dict):
            raise TransportError(f"pin/ls returned no Keys for {hash_}: {data!r}")
        return PinStatus.PINNED if hash_ in keys else PinStatus.UNPINNED

    def pin_add(self, hash_: str, recursive: bool = True) -> None:
        self._json("pin/add", [hash_], {"recursive": recursive})

    def copy_by_hash(self, hash_: str, dest_path: str) -> None:
        self._json("files/cp", [f"/ipfs/{hash_}", dest_path])

    def make_directory(self, path: str, parents: bool = True) -> None:
        self._json("files/mkdir", [path], {"parents": parents})

    def read_stream(
        self, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[bytes]:
        resp = self._api_call("files/read", [path], stream=True)
        with resp:
            try:
                for chunk in resp.iter_content(chunk_size=chunk_size):
                    if chunk:
                        yield chunk
            except requests.RequestException as exc:
                raise TransportError(f"files/read {path} interrupted: {exc}") from exc
