"""Memoized MongoDB connection and collection handles."""

from __future__ import annotations

__version__ = "0.1.0"

from .drivers import (
    DatabaseHandle,
    Driver,
    DriverError,
    MemoryDriver,
    MotorDriver,
    build_driver,
)
from .registry import ConnectionRegistry, connect, get_registry, reset_registry

__all__ = [
    "ConnectionRegistry",
    "DatabaseHandle",
    "Driver",
    "DriverError",
    "MemoryDriver",
    "MotorDriver",
    "__version__",
    "build_driver",
    "connect",
    "get_registry",
    "reset_registry",
]
