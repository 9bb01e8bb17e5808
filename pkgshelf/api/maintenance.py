"""
Maintenance API endpoints.

Exposes the cache, prune and clean passes of the current project over HTTP so
build agents can keep a shared install root tidy without shell access.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from pkgshelf.core.dependencies import get_runtime
from pkgshelf.core.errors import FilesystemAccessDenied, PkgshelfError
from pkgshelf.services.runtime import Runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/maintenance")


class SpecSummary(BaseModel):
    name: str
    version: str
    platform: str
    installed: bool


class CacheRequest(BaseModel):
    """
    Request model for the cache endpoint.
    """

    target_dir: Optional[str] = Field(
        default=None,
        description="Directory to cache into. Defaults to the project's app cache path.",
    )


class CleanResult(BaseModel):
    dry_run: bool
    removed: List[str] = Field(
        default_factory=list,
        description="Package and checkout directories removed (or that would be removed), as 'name (version)'.",
    )


def require_runtime(runtime: Optional[Runtime] = Depends(get_runtime)) -> Runtime:
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No resolution has been loaded for this project.",
        )
    return runtime


def _raise_http(e: PkgshelfError) -> None:
    if isinstance(e, FilesystemAccessDenied):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("/specs")
async def list_specs(runtime: Runtime = Depends(require_runtime)) -> List[SpecSummary]:
    return [
        SpecSummary(
            name=s.name,
            version=s.version,
            platform=s.platform,
            installed=bool(s.loaded_from),
        )
        for s in runtime.specs
    ]


@router.post("/cache")
async def cache(
    request: Optional[CacheRequest] = None,
    runtime: Runtime = Depends(require_runtime),
) -> dict:
    """
    Copy every resolved package into the cache directory (pruning afterwards
    unless disabled in the settings).
    """
    target_dir = request.target_dir if request else None
    try:
        runtime.cache(target_dir)
    except PkgshelfError as e:
        logger.error(f"Cache failed: {e}")
        _raise_http(e)
    return {"status": "ok"}


@router.post("/prune")
async def prune(runtime: Runtime = Depends(require_runtime)) -> dict:
    try:
        removed = runtime.prune()
    except PkgshelfError as e:
        logger.error(f"Prune failed: {e}")
        _raise_http(e)
    return {"status": "ok", "removed": removed}


@router.post("/clean")
async def clean(
    dry_run: bool = Query(False, description="Only report what would be removed."),
    runtime: Runtime = Depends(require_runtime),
) -> CleanResult:
    """
    Remove installed artifacts that the current resolution no longer references.
    """
    try:
        removed = runtime.clean(dry_run=dry_run)
    except PkgshelfError as e:
        logger.error(f"Clean failed: {e}")
        _raise_http(e)
    return CleanResult(dry_run=dry_run, removed=removed)
