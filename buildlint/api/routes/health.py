"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from buildlint.config import APP_VERSION
from buildlint.api.dependencies import get_file_cache
from buildlint.cache.file_cache import FileCache
from buildlint.core.rule_engine import RULE_REGISTRY

router = APIRouter()


@router.get("/health")
async def health(cache: FileCache = Depends(get_file_cache)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": APP_VERSION,
        "rules": len(RULE_REGISTRY),
        "cache": cache.stats(),
    }
