"""FastAPI application — main entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docrag.api.routers.v1 import router as v1_router
from docrag.api.schemas import ErrorResponse, HealthResponse
from docrag.config import get_settings
from docrag.exceptions import (
    AlreadyIngested,
    DocRagError,
    EmptyDocument,
    ExtractionFailure,
    NotFound,
    QueryRequired,
    QuestionRequired,
    UnsupportedFormat,
)
from docrag.logger import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)
settings = get_settings()

_STATUS_BY_ERROR: tuple[tuple[type[DocRagError], int], ...] = (
    (QueryRequired, 400),
    (QuestionRequired, 400),
    (NotFound, 404),
    (AlreadyIngested, 409),
    (UnsupportedFormat, 415),
    (EmptyDocument, 422),
    (ExtractionFailure, 422),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("docrag API starting", environment=settings.environment)
    yield
    logger.info("docrag API shutting down")


app = FastAPI(
    title="Shared Document Retrieval",
    description="Document ingestion, full-text search and grounded answers",
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

app.include_router(v1_router)


@app.exception_handler(DocRagError)
async def docrag_error_handler(request: Request, exc: DocRagError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("Request failed", path=request.url.path, error=str(exc))
    body = ErrorResponse(error=type(exc).__name__, message=exc.message, details=exc.details)
    return JSONResponse(status_code=status, content=body.model_dump())


# ── Health ───────────────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", environment=settings.environment)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("docrag.api.main:app", host=settings.api_host, port=settings.api_port)
