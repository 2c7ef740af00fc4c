"""
Institute Dashboard — admin / faculty / student backend over Supabase.
FastAPI entry point.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from institute.core.config import settings
from institute.core.context import AppContext, build_context
from institute.core.errors import add_error_handlers
from institute.core.log_config import configure_logging
from institute.routers import auth, entities, enrollments, imports, reports

logger = logging.getLogger(__name__)


def create_app(context: AppContext | None = None) -> FastAPI:
    context = context or build_context(settings)
    configure_logging(context.settings)

    app = FastAPI(
        title=context.settings.APP_NAME,
        description="Role-based institute management: bulk import, reports, CRUD",
        version="1.0.0",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(entities.router)
    app.include_router(imports.router)
    app.include_router(enrollments.router)
    app.include_router(reports.router)

    @app.get("/")
    async def root():
        return {
            "name": context.settings.APP_NAME,
            "version": "1.0.0",
            "status": "running",
            "auth_mode": context.settings.AUTH_MODE,
        }

    @app.get("/api/health")
    async def health():
        return {"status": "healthy", "auth_mode": context.settings.AUTH_MODE}

    logger.info("%s started in %s auth mode", context.settings.APP_NAME, context.settings.AUTH_MODE)
    return app


app = create_app()
