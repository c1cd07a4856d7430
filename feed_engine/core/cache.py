"""
Generic in-memory cache with TTL support.
Thread-safe and suitable for L1 caching of user profiles and embeddings.
Can be replaced with Redis adapter for production.
"""
import time
from abc import ABC, abstractmethod
from threading import Lock
from typing import Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class CacheInterface(ABC, Generic[T]):
    """Abstract interface for cache implementations."""

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        pass

    @abstractmethod
    def update(self, key: str, updater: Callable[[T], T]) -> Optional[T]:
        """
        Atomically replace a live entry with updater(old), keeping its expiry.
        Returns the new value, or None if the key is missing or expired.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all entries."""
        pass


class CacheEntry(Generic[T]):
    """Single cache entry with expiration tracking."""

    def __init__(self, value: T, expires_at: Optional[float]) -> None:
        self.value = value
        self.expires_at = expires_at

    def is_expired(self) -> bool:
        """Check if entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class InMemoryCache(CacheInterface[T]):
    """
    Thread-safe in-memory cache with TTL support.

    Usage:
        cache: CacheInterface[UserProfile] = InMemoryCache(default_ttl_seconds=300)
        profile = cache.get("user_123")
    """

    def __init__(self, default_ttl_seconds: Optional[float] = None) -> None:
        self._store: Dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl_seconds
        self._lock = Lock()

    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = time.time() + ttl if ttl else None
        with self._lock:
            self._store[key] = CacheEntry(value, expires_at)

    def update(self, key: str, updater: Callable[[T], T]) -> Optional[T]:
        """Apply updater to a live entry without touching its expiry."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            entry.value = updater(entry.value)
            return entry.value

    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        with self._lock:
            if key in self._store:
                del self._store[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Return number of entries (including possibly expired)."""
        with self._lock:
            return len(self._store)

    def _live_entry(self, key: str) -> Optional[CacheEntry[T]]:
        # Caller must hold the lock
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._store[key]
            return None
        return entry
