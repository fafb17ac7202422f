"""Memoizing registry of database and collection handles."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence

from .config import load_config
from .drivers import DatabaseHandle, Driver, build_driver, redact_uri
from .models import CollectionHandle, CollectionKey, CollectionResult, CollectionSpec

LOG = logging.getLogger(__name__)


class ConnectionRegistry:
    """Hands out one database handle per connection string and one
    collection handle per (database, collection) pair.

    Connection slots are filled with the in-flight connect task the moment it
    is scheduled, so callers that arrive while it is still pending share the
    same attempt. A failed attempt stays in its slot: later calls for the same
    connection string re-raise the original error without reconnecting.
    Nothing is ever evicted; use :attr:`connections` and :attr:`collections`
    to inspect or edit the caches directly.
    """

    def __init__(self, driver: Driver) -> None:
        self._driver = driver
        self._connections: dict[str, Any] = {}
        self._collections: dict[CollectionKey, CollectionHandle] = {}

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def connections(self) -> dict[str, Any]:
        """Live connection cache: connection string -> pending task or handle."""

        return self._connections

    @property
    def collections(self) -> dict[CollectionKey, CollectionHandle]:
        """Live collection cache: (database name, collection name) -> handle."""

        return self._collections

    def seed_connection(self, uri: str, handle: DatabaseHandle) -> None:
        """Store an already connected handle for ``uri``."""

        _check_uri(uri)
        self._connections[uri] = handle

    async def resolve_one(self, uri: str) -> DatabaseHandle:
        """Return the database handle for ``uri``, connecting at most once."""

        _check_uri(uri)
        entry = self._connections.get(uri)
        if entry is None:
            LOG.debug("Opening connection", extra={"uri": redact_uri(uri)})
            entry = asyncio.ensure_future(self._driver.connect(uri))
            self._connections[uri] = entry
        if asyncio.isfuture(entry):
            return await asyncio.shield(entry)
        return entry

    async def resolve_many(self, uris: Sequence[str]) -> list[DatabaseHandle]:
        """Resolve every connection string; the first failure fails the batch."""

        if isinstance(uris, str) or not isinstance(uris, Sequence):
            raise TypeError("Expected a sequence of connection strings.")
        for uri in uris:
            _check_uri(uri)
        handles = await asyncio.gather(*(self.resolve_one(uri) for uri in uris))
        return list(handles)

    async def resolve_collections(self, uri: str, spec: CollectionSpec) -> CollectionResult:
        """Connect to ``uri`` and return the requested collection handles.

        ``spec`` is either a list of collection names, answered with a list in
        the same order, or a mapping of alias -> collection name, answered with
        a dict keyed by the same aliases.
        """

        _check_uri(uri)
        _check_spec(spec)
        database = await self.resolve_one(uri)
        if isinstance(spec, Mapping):
            return {alias: self._collection(database, name) for alias, name in spec.items()}
        return [self._collection(database, name) for name in spec]

    async def resolve_many_with_collections(
        self, spec_by_uri: Mapping[str, CollectionSpec]
    ) -> list[CollectionResult]:
        """Run :meth:`resolve_collections` for each entry, in mapping order."""

        if not isinstance(spec_by_uri, Mapping):
            raise TypeError("Expected a mapping of connection string -> collections.")
        for uri, spec in spec_by_uri.items():
            _check_uri(uri)
            _check_spec(spec)
        results = await asyncio.gather(
            *(self.resolve_collections(uri, spec) for uri, spec in spec_by_uri.items())
        )
        return list(results)

    async def connect(self, target: Any, collections: CollectionSpec | None = None) -> Any:
        """Route to one of the resolve methods based on the shape of ``target``.

        - mapping of connection string -> collections: :meth:`resolve_many_with_collections`
        - sequence of connection strings: :meth:`resolve_many`
        - connection string plus ``collections``: :meth:`resolve_collections`
        - connection string alone: :meth:`resolve_one`
        """

        if isinstance(target, Mapping):
            return await self.resolve_many_with_collections(target)
        if isinstance(target, str):
            if collections is not None:
                return await self.resolve_collections(target, collections)
            return await self.resolve_one(target)
        if isinstance(target, Sequence):
            return await self.resolve_many(target)
        raise TypeError(f"Cannot connect to a {type(target).__name__}.")

    def _collection(self, database: DatabaseHandle, name: str) -> CollectionHandle:
        key = (database.name, name)
        handle = self._collections.get(key)
        if handle is None:
            LOG.debug("Creating collection handle", extra={"database": key[0], "collection": name})
            handle = database.get_collection(name)
            self._collections[key] = handle
        return handle


_default_registry: ConnectionRegistry | None = None


def get_registry() -> ConnectionRegistry:
    """Lazily create the process-wide registry using the on-disk driver config."""

    global _default_registry
    if _default_registry is None:
        _default_registry = ConnectionRegistry(build_driver(load_config().driver))
    return _default_registry


def reset_registry() -> None:
    """Forget the process-wide registry (testing helper)."""

    global _default_registry
    _default_registry = None


async def connect(target: Any, collections: CollectionSpec | None = None) -> Any:
    """Shortcut for ``get_registry().connect(...)``."""

    return await get_registry().connect(target, collections)


def _check_uri(uri: object) -> None:
    if not isinstance(uri, str):
        raise TypeError(f"Connection string must be a str, not {type(uri).__name__}.")
    if not uri:
        raise ValueError("Connection string must not be empty.")


def _check_spec(spec: object) -> None:
    if isinstance(spec, Mapping):
        names = spec.values()
    elif isinstance(spec, Sequence) and not isinstance(spec, str):
        names = spec
    else:
        raise TypeError("Collections must be a list of names or a mapping of alias -> name.")
    for name in names:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Invalid collection name: {name!r}")


__all__ = [
    "ConnectionRegistry",
    "connect",
    "get_registry",
    "reset_registry",
]
