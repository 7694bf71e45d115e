"""
Scan Routes — POST /scan and GET /rules.

POST /scan accepts {"files": [{"path", "content"}], "rules": [...]} and
returns per-file reports plus the combined, sorted diagnostic records.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from buildlint.api.dependencies import get_scan_worker
from buildlint.config import settings
from buildlint.core.rule_engine import RULE_CATALOG
from buildlint.models.rule_models import RuleInfo
from buildlint.models.scan_models import ScanRequest, ScanResponse
from buildlint.workers.scan_worker import ScanWorker

logger = logging.getLogger("buildlint.api.scan")
router = APIRouter()

# Max files per request
MAX_FILES = 200


@router.post("/scan", response_model=ScanResponse)
async def scan_files(req: ScanRequest, worker: ScanWorker = Depends(get_scan_worker)):
    """Analyze the submitted build files."""
    if not req.files:
        raise HTTPException(status_code=400, detail="No files provided")

    if len(req.files) > MAX_FILES:
        raise HTTPException(
            status_code=413,
            detail=f"Too many files: {len(req.files)} (max {MAX_FILES})",
        )

    for f in req.files:
        size = len(f.content.encode("utf-8", "surrogatepass"))
        if size > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=413,
                detail=(
                    f"File '{f.path}' is {size} bytes, larger than the "
                    f"{settings.max_file_size_bytes} byte limit"
                ),
            )

    try:
        return await worker.run_scan(req.files, req.rules)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/rules", response_model=list[RuleInfo])
async def list_rules():
    """Catalog of every diagnostic kind buildlint can report."""
    return list(RULE_CATALOG.values())
