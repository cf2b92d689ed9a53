"""
Key-value abstraction for page content.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

from vibeflare.errors import StorageError

DEFAULT_PAGE_KEY_PREFIX = "page:"

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def page_key(slug: str, prefix: str = DEFAULT_PAGE_KEY_PREFIX) -> str:
    """Storage key for a page. The slug is used verbatim."""
    return f"{prefix}{slug}"


class KeyValueStore(Protocol):
    """Minimal string key-value interface used for pages."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def list(self, prefix: str = "") -> list[str]:
        ...


@dataclass
class InMemoryKeyValueStore:
    """Dict-backed store for testing/dev."""

    items: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def put(self, key: str, value: str) -> None:
        self.items[key] = value

    def list(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self.items if key.startswith(prefix))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.items.clear()


@dataclass
class RedisKeyValueStore:
    """Redis-backed store using plain string keys."""

    url: str

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis_exceptions.RedisError as exc:
            raise StorageError(f"Key-value read failed for {key!r}: {exc}") from exc
        if value is None:
            return None
        return value.decode("utf-8")

    def put(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value.encode("utf-8"))
        except redis_exceptions.RedisError as exc:
            raise StorageError(f"Key-value write failed for {key!r}: {exc}") from exc

    def list(self, prefix: str = "") -> list[str]:
        pattern = _GLOB_SPECIAL.sub(r"\\\1", prefix) + "*"
        try:
            keys = {key.decode("utf-8") for key in self.client.scan_iter(match=pattern)}
        except redis_exceptions.RedisError as exc:
            raise StorageError(f"Key-value listing failed for {prefix!r}: {exc}") from exc
        return sorted(keys)
