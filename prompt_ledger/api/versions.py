"""Version control endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from prompt_ledger.api.models import (
    CompareResponse,
    DiffRequest,
    DiffResponse,
    PromptResponse,
    RollbackRequest,
    RollbackResponse,
    VersionResponse,
    VersionStatsResponse,
)
from prompt_ledger.core.differ import DiffResult
from prompt_ledger.core.vcs import VersionControl, get_vcs
from prompt_ledger.db.models import Version

router = APIRouter()


def _version(version: Version) -> VersionResponse:
    return VersionResponse(**version.model_dump())


def _diff(diff: DiffResult) -> DiffResponse:
    return DiffResponse(**diff.to_dict())


@router.get("/prompts/{prompt_id}/versions", response_model=list[VersionResponse])
async def list_versions(
    prompt_id: str,
    since: datetime | None = None,
    until: datetime | None = None,
    vcs: VersionControl = Depends(get_vcs),
) -> list[VersionResponse]:
    """Get version history for a prompt, newest first.

    ``since``/``until`` restrict the result to versions created in that window.
    """
    if since is not None or until is not None:
        versions = vcs.versions_between(prompt_id, since, until)
    else:
        versions = vcs.history(prompt_id)
    return [_version(v) for v in versions]


@router.get("/prompts/{prompt_id}/versions/rollbacks", response_model=list[VersionResponse])
async def list_rollbacks(
    prompt_id: str,
    vcs: VersionControl = Depends(get_vcs),
) -> list[VersionResponse]:
    """Versions that were created by rollbacks."""
    return [_version(v) for v in vcs.rollback_versions(prompt_id)]


@router.get("/prompts/{prompt_id}/versions/stats", response_model=VersionStatsResponse)
async def version_stats(
    prompt_id: str,
    vcs: VersionControl = Depends(get_vcs),
) -> VersionStatsResponse:
    """Version chain statistics for a prompt."""
    stats = vcs.stats(prompt_id)
    return VersionStatsResponse(
        total_versions=stats.total_versions,
        rollback_count=stats.rollback_count,
        first_version_date=stats.first_version_date,
        last_version_date=stats.last_version_date,
    )


@router.post("/prompts/{prompt_id}/rollback", response_model=RollbackResponse, status_code=201)
async def rollback_version(
    prompt_id: str,
    data: RollbackRequest,
    vcs: VersionControl = Depends(get_vcs),
) -> RollbackResponse:
    """Rollback to a previous version by appending a copy of it."""
    result = vcs.rollback(prompt_id, data.version_id, note=data.note)
    return RollbackResponse(
        new_version=_version(result.new_version),
        prompt=PromptResponse(**result.prompt.model_dump()),
    )


@router.get("/versions/{version_id}", response_model=VersionResponse)
async def get_version(
    version_id: str,
    vcs: VersionControl = Depends(get_vcs),
) -> VersionResponse:
    """Get a specific version."""
    return _version(vcs.registry.get_version(version_id))


@router.get("/versions/{version_id_1}/compare/{version_id_2}", response_model=CompareResponse)
async def compare_versions(
    version_id_1: str,
    version_id_2: str,
    ignore_whitespace: bool = False,
    ignore_case: bool = False,
    context_lines: int | None = Query(default=None, ge=0),
    vcs: VersionControl = Depends(get_vcs),
) -> CompareResponse:
    """Line, word and character diff between two versions."""
    comparison = vcs.compare(
        version_id_1,
        version_id_2,
        ignore_whitespace=ignore_whitespace,
        ignore_case=ignore_case,
        context_lines=context_lines,
    )
    return CompareResponse(
        version1=_version(comparison.version1),
        version2=_version(comparison.version2),
        diff=_diff(comparison.diff),
    )


@router.post("/diff", response_model=DiffResponse)
async def diff_contents(
    data: DiffRequest,
    vcs: VersionControl = Depends(get_vcs),
) -> DiffResponse:
    """Diff two arbitrary strings without touching the store."""
    diff = vcs.differ.generate_diff(
        data.content1,
        data.content2,
        ignore_whitespace=data.ignore_whitespace,
        ignore_case=data.ignore_case,
        context_lines=data.context_lines,
    )
    return _diff(diff)
