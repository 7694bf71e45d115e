"""
File Cache — SHA-256 hash-based incremental caching.

Caches the finished report of each build file, keyed by path, content hash
and the set of rules that ran. Unchanged files skip scanning entirely.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from buildlint.config import settings
from buildlint.models.scan_models import FileReport


@dataclass
class CacheEntry:
    """A cached analysis result for a single file."""

    content_hash: str
    report: FileReport
    timestamp: float = field(default_factory=time.time)

    @property
    def is_expired(self) -> bool:
        return (time.time() - self.timestamp) > settings.cache_ttl_seconds


class FileCache:
    """
    In-memory file-level cache keyed by SHA-256 of file content.

    Lives only as long as the process; nothing is written to disk.
    """

    def __init__(self) -> None:
        self._store: dict[str, CacheEntry] = {}

    @staticmethod
    def hash_content(content: str) -> str:
        """Compute SHA-256 hash of file content."""
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    @staticmethod
    def _key(file_path: str, content_hash: str, rules: Iterable[str] | None) -> str:
        variant = ",".join(sorted(rules)) if rules else "*"
        return f"{file_path}:{content_hash}:{variant}"

    def get(
        self, file_path: str, content: str, rules: Iterable[str] | None = None
    ) -> CacheEntry | None:
        """
        Look up the cached report for a file.

        Returns None if not cached, expired, or content has changed.
        """
        key = self._key(file_path, self.hash_content(content), rules)
        entry = self._store.get(key)

        if entry is None:
            return None

        if entry.is_expired:
            self._store.pop(key, None)
            return None

        return entry

    def put(
        self,
        file_path: str,
        content: str,
        report: FileReport,
        rules: Iterable[str] | None = None,
    ) -> None:
        """Cache the report for a file."""
        content_hash = self.hash_content(content)
        self._store[self._key(file_path, content_hash, rules)] = CacheEntry(
            content_hash=content_hash,
            report=report,
        )

    def invalidate(self, file_path: str) -> int:
        """Remove all cached entries for a file path. Returns count removed."""
        keys_to_remove = [k for k in self._store if k.startswith(f"{file_path}:")]
        for key in keys_to_remove:
            self._store.pop(key, None)
        return len(keys_to_remove)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._store.clear()

    @property
    def size(self) -> int:
        """Number of cached entries."""
        return len(self._store)

    def stats(self) -> dict[str, Any]:
        """Cache statistics."""
        expired = sum(1 for e in list(self._store.values()) if e.is_expired)
        return {
            "total_entries": len(self._store),
            "expired_entries": expired,
            "active_entries": len(self._store) - expired,
        }
