from __future__ import annotations

import logging

from catalog_core.errors import InvalidInputError, NotFoundError, StorageIOError
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_server.adapters import SQLiteChunkedBlobStore, SQLiteTemplateRepository
from catalog_server.config import Settings
from catalog_server.http.api import build_api_router
from catalog_server.http.context import AppContext

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, auth_token: str | None = None) -> FastAPI:
    cfg = settings or Settings()
    cfg.ensure_dirs()
    token = auth_token or cfg.resolved_auth_token()

    ctx = AppContext(
        settings=cfg,
        auth_token=token,
        templates=SQLiteTemplateRepository(str(cfg.catalog_db_path)),
        blob_store=SQLiteChunkedBlobStore(str(cfg.blob_db_path), chunk_size=cfg.blob_chunk_size),
    )

    app = FastAPI(title="Template Catalog", version="0.1.0")
    app.state.ctx = ctx
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.include_router(build_api_router())

    @app.exception_handler(NotFoundError)
    def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    def invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StorageIOError)
    def storage_failure(request: Request, exc: StorageIOError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
