"""
FastAPI application factory for the operator API.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from printdesk.api.dependencies import init_dependencies
from printdesk.api.routes import router
from printdesk.errors import InvalidStateError, ValidationError
from printdesk.orchestrator import NoticeBoard, PrintOrchestrator
from printdesk.triggers import TriggerRegistry

logger = logging.getLogger(__name__)


def create_app(
    orchestrator: PrintOrchestrator,
    triggers: Optional[TriggerRegistry] = None,
    notices: Optional[NoticeBoard] = None,
    cors_origins: list[str] = None,
    debug: bool = False,
    open_picker_on_start: bool = True
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        orchestrator: Print orchestrator the routes drive
        triggers: Configured print triggers
        notices: Board the orchestrator posts notices to (drained by /v1/state)
        cors_origins: List of allowed CORS origins (None = allow all)
        debug: Enable debug mode
        open_picker_on_start: Open the printer picker at startup when no
                              default printer is stored

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Print Desk",
        description="Operator API for printing through the local print gateway",
        version="1.0.0",
        debug=debug
    )

    # CORS configuration
    if cors_origins is None:
        # Development: allow all origins
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    init_dependencies(
        orchestrator,
        triggers if triggers is not None else TriggerRegistry(),
        notices if notices is not None else NoticeBoard()
    )

    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": exc.message,
                "code": exc.error_code,
                "field": exc.field
            }
        )

    @app.exception_handler(InvalidStateError)
    async def on_invalid_state(request: Request, exc: InvalidStateError):
        return JSONResponse(
            status_code=409,
            content={
                "detail": exc.message,
                "phase": exc.phase
            }
        )

    app.include_router(router)

    @app.on_event("startup")
    async def startup():
        logger.info("Print desk starting...")
        config = orchestrator.store.load()
        logger.info(f"  Gateway: {config.address}")
        logger.info(f"  Default printer: {config.default_destination or '(not configured)'}")

        if open_picker_on_start:
            await orchestrator.start()

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("Print desk shutting down...")
        orchestrator.cancel()

    return app
