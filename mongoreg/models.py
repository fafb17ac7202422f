"""Shared type aliases used across the registry and driver modules."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Union

CollectionHandle = Any
CollectionKey = tuple[str, str]
CollectionSpec = Union[Sequence[str], Mapping[str, str]]
CollectionResult = Union[list[CollectionHandle], dict[str, CollectionHandle]]


__all__ = ["CollectionHandle", "CollectionKey", "CollectionResult", "CollectionSpec"]
