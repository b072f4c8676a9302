"""Prompt CRUD endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from prompt_ledger.api.models import (
    PromptCreate,
    PromptResponse,
    PromptStatsResponse,
    PromptUpdate,
)
from prompt_ledger.core.registry import PromptRegistry, get_registry

router = APIRouter()


@router.post("", response_model=PromptResponse, status_code=201)
async def create_prompt(
    data: PromptCreate,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptResponse:
    """Create a new prompt with its initial version."""
    prompt = registry.create_prompt(
        title=data.title,
        content=data.content,
        tags=data.tags,
        note=data.note,
    )
    return PromptResponse(**prompt.model_dump())


@router.get("", response_model=list[PromptResponse])
async def list_prompts(
    tag: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    registry: PromptRegistry = Depends(get_registry),
) -> list[PromptResponse]:
    """List prompts, most recently updated first."""
    prompts = registry.list_prompts(limit=limit, offset=offset, tag=tag)
    return [PromptResponse(**p.model_dump()) for p in prompts]


@router.get("/stats", response_model=PromptStatsResponse)
async def prompt_stats(
    registry: PromptRegistry = Depends(get_registry),
) -> PromptStatsResponse:
    """Store-wide prompt and version totals."""
    return PromptStatsResponse(**registry.stats())


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: str,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptResponse:
    """Get a prompt by id."""
    return PromptResponse(**registry.get_prompt(prompt_id).model_dump())


@router.put("/{prompt_id}", response_model=PromptResponse)
async def update_prompt(
    prompt_id: str,
    data: PromptUpdate,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptResponse:
    """Update a prompt; a content change creates a new version."""
    prompt = registry.update_prompt(prompt_id, **data.model_dump(exclude_none=True))
    return PromptResponse(**prompt.model_dump())


@router.delete("/{prompt_id}", status_code=204)
async def delete_prompt(
    prompt_id: str,
    registry: PromptRegistry = Depends(get_registry),
) -> None:
    """Delete a prompt and its version history."""
    registry.delete_prompt(prompt_id)
