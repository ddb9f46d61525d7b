from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from buildtracker.core.config import settings
from buildtracker.core.exceptions import BuildTrackerException
from buildtracker.core.logging import setup_logging
from buildtracker.routers import builds


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    app.include_router(builds.router, prefix="/api", tags=["builds"])

    @app.exception_handler(BuildTrackerException)
    async def handle_build_tracker_exception(_: Request, exc: BuildTrackerException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
