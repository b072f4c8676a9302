"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prompt_ledger.api.router import api_router
from prompt_ledger.config import get_settings
from prompt_ledger.core.errors import LedgerError
from prompt_ledger.db.client import get_storage_client
from prompt_ledger.utils.logging import setup_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("ledger.starting", port=settings.port)

    # Connect and create tables up front so the first request does not pay for it
    get_storage_client()

    yield

    logger.info("ledger.shutdown")


app = FastAPI(
    title="Prompt Ledger",
    description="Version control for prompt text: history, rollback and diffs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Translate domain errors into JSON error responses."""
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.get("/")
async def root():
    """Service info endpoint."""
    return {"service": "prompt-ledger", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "prompt-ledger", "version": "0.1.0"}


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("prompt_ledger.main:app", host="0.0.0.0", port=settings.port)
