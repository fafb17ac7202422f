"""Driver backends that turn connection strings into database handles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

from motor.motor_asyncio import AsyncIOMotorClient

from .models import CollectionHandle

if TYPE_CHECKING:
    from .config import DriverConfig

LOG = logging.getLogger(__name__)


class DriverError(RuntimeError):
    """Raised when a bundled driver cannot produce a database handle."""


@runtime_checkable
class DatabaseHandle(Protocol):
    """The two things the registry needs from a connected database."""

    @property
    def name(self) -> str:
        """Name of the database the connection string resolved to."""

    def get_collection(self, name: str) -> CollectionHandle:
        """Return a handle for the named collection (no I/O)."""


@runtime_checkable
class Driver(Protocol):
    """Protocol implemented by driver backends."""

    async def connect(self, uri: str) -> DatabaseHandle:
        """Connect to ``uri`` and return the database it names."""


class MotorDriver:
    """Driver backend built on motor's asyncio client."""

    def __init__(
        self,
        client_options: Mapping[str, Any] | None = None,
        *,
        ping: bool = True,
        default_database: str = "test",
    ) -> None:
        self._client_options = dict(client_options or {})
        self._ping = ping
        self._default_database = default_database

    async def connect(self, uri: str) -> DatabaseHandle:
        client = AsyncIOMotorClient(uri, **self._client_options)
        if self._ping:
            try:
                await client.admin.command("ping")
            except Exception:
                client.close()
                raise
        database = client.get_default_database(self._default_database)
        LOG.debug("Connected", extra={"uri": redact_uri(uri), "database": database.name})
        return database


class MemoryCollection:
    """Collection handle produced by :class:`MemoryDatabase`."""

    def __init__(self, database: MemoryDatabase, name: str) -> None:
        self.database = database
        self.name = name
        self.documents: list[dict[str, Any]] = []

    @property
    def full_name(self) -> str:
        return f"{self.database.name}.{self.name}"

    def __repr__(self) -> str:
        return f"MemoryCollection({self.full_name!r})"


class MemoryDatabase:
    """In-process database handle; every lookup builds a fresh collection object."""

    def __init__(self, name: str) -> None:
        self._name = name
        self.lookups: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def get_collection(self, name: str) -> MemoryCollection:
        self.lookups.append(name)
        return MemoryCollection(self, name)

    def __repr__(self) -> str:
        return f"MemoryDatabase({self._name!r})"


class MemoryDriver:
    """Driver that resolves connection strings without touching the network.

    The database name comes from ``databases`` when the URI is listed there,
    otherwise from the URI path (``memory://host/shop`` -> ``shop``), falling
    back to ``default_database``. URIs listed in ``failures`` raise
    :class:`DriverError`, which makes failure paths easy to script.
    """

    def __init__(
        self,
        databases: Mapping[str, str] | None = None,
        *,
        failures: Iterable[str] = (),
        default_database: str = "test",
    ) -> None:
        self._databases = dict(databases or {})
        self._failures = set(failures)
        self._default_database = default_database
        self.connect_calls: dict[str, int] = {}

    async def connect(self, uri: str) -> MemoryDatabase:
        self.connect_calls[uri] = self.connect_calls.get(uri, 0) + 1
        if uri in self._failures:
            raise DriverError(f"Failed to connect to '{redact_uri(uri)}'")
        name = self._databases.get(uri) or _database_from_uri(uri) or self._default_database
        return MemoryDatabase(name)


def build_driver(config: DriverConfig) -> Driver:
    """Create the driver named in ``config``."""

    if config.name == "motor":
        return MotorDriver(
            config.client_options(),
            ping=config.ping,
            default_database=config.default_database,
        )
    if config.name == "memory":
        return MemoryDriver(default_database=config.default_database)
    raise DriverError(f"Unknown driver '{config.name}'")


def redact_uri(uri: str) -> str:
    """Hide the password portion of a connection string."""

    try:
        parts = urlsplit(uri)
    except ValueError:
        return "<unparseable uri>"
    if "@" not in parts.netloc:
        return uri
    userinfo, _, hosts = parts.netloc.rpartition("@")
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:***@{hosts}"))


def _database_from_uri(uri: str) -> str | None:
    try:
        path = urlsplit(uri).path
    except ValueError:
        return None
    name = path.lstrip("/").split("/", 1)[0]
    return name or None


__all__ = [
    "DatabaseHandle",
    "Driver",
    "DriverError",
    "MemoryCollection",
    "MemoryDatabase",
    "MemoryDriver",
    "MotorDriver",
    "build_driver",
    "redact_uri",
]
