"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from buildlint.cache.file_cache import FileCache
from buildlint.workers.scan_worker import ScanWorker


@lru_cache
def get_file_cache() -> FileCache:
    """Shared file cache singleton."""
    return FileCache()


@lru_cache
def get_scan_worker() -> ScanWorker:
    """Shared scan worker singleton."""
    return ScanWorker(cache=get_file_cache())
