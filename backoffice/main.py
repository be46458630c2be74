# backoffice/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.api.router import api_router
from backoffice.core.config import check_settings, get_settings
from backoffice.core.logging import setup_logging
from backoffice.db.session import close_engines
from backoffice.http_problem_handlers import register_exception_handlers

logger = logging.getLogger("backoffice")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_engines()


def create_app() -> FastAPI:
    settings = get_settings()
    check_settings(settings)
    setup_logging(settings.LOG_LEVEL, fmt=settings.LOG_FORMAT)

    app = FastAPI(
        title="Storefront Back Office",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    logger.info("backoffice app created: env=%s", settings.ENV)
    return app


app = create_app()
