"""Main API router, aggregating the endpoint modules."""

from fastapi import APIRouter

from prompt_ledger.api.prompts import router as prompts_router
from prompt_ledger.api.versions import router as versions_router

api_router = APIRouter()

api_router.include_router(prompts_router, prefix="/prompts", tags=["prompts"])
api_router.include_router(versions_router, tags=["versions"])
