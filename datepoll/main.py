from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import init_db
from .services.errors import PollError

from .api.voters import router as voters_router
from .api.votes import router as votes_router
from .api.overlap import router as overlap_router
from .api.site import router as site_router
from .api.admin import router as admin_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Date Poll API",
        version=settings.app_version or __version__,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Startup ---
    @app.on_event("startup")
    def _startup() -> None:
        # Creates missing tables (idempotent)
        init_db()

    # --- Error envelope for business / store errors ---
    @app.exception_handler(PollError)
    async def poll_error_handler(request: Request, exc: PollError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.code},
        )

    # --- Health / meta ---
    @app.get("/health", tags=["meta"])
    def health() -> Dict[str, Any]:
        return {"ok": True, "env": settings.env}

    @app.get("/version", tags=["meta"])
    def version() -> Dict[str, Any]:
        return {"version": settings.app_version or __version__}

    # --- API routers ---
    app.include_router(voters_router)
    app.include_router(votes_router)
    app.include_router(overlap_router)
    app.include_router(site_router)
    app.include_router(admin_router)

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(level=getattr(logging, str(settings.log_level).upper(), logging.INFO))
    import uvicorn

    # NOTE: init_db is handled by the FastAPI startup hook.
    uvicorn.run(
        "datepoll.main:app",
        host=settings.host,
        port=int(settings.port),
        reload=bool(settings.reload),
    )
