# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
Member Directory Service
========================
Admin-managed membership directory (name, law firm, email, phone, country,
practice groups) with self-service editing through per-member modification
links. A link carries a key derived from the member's email with HMAC-SHA256;
the key is the only credential a self-service edit needs.

Members live in MongoDB, a Google Sheet, or memory (STORE_BACKEND); groups in
MongoDB or memory (GROUP_BACKEND). With SHEET_MIRROR=true every member write to
MongoDB is copied into the sheet.

Port: 5010
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from member_directory.controllers import group_controller, member_controller, system_controller
from member_directory.core.config import settings
from member_directory.core.dependencies import Container, build_container
from member_directory.core.errors import DirectoryError
from member_directory.core.logging import get_logger
from member_directory.middleware import MetricsMiddleware, RequestIDMiddleware
from member_directory.schemas import ErrorResponse

logger = get_logger(settings.SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    container: Optional[Container] = getattr(application.state, "container", None)
    if container is None:
        container = build_container(settings)
        application.state.container = container
    try:
        container.startup()
    except DirectoryError as exc:
        logger.warning("Index setup skipped: %s", exc.detail)
    logger.info("Member directory starting (store=%s)", settings.STORE_BACKEND)
    yield
    container.close()
    logger.info("Member directory shutting down")


def create_app(container: Optional[Container] = None) -> FastAPI:
    application = FastAPI(
        title="Member Directory",
        description="Member records, groups, and HMAC-keyed modification links.",
        version="1.0.0",
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse, "description": "Validation error"},
            500: {"model": ErrorResponse, "description": "Internal server error"},
        },
    )
    if container is not None:
        application.state.container = container

    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(DirectoryError)
    async def directory_error_handler(request: Request, exc: DirectoryError):
        req_id = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.error, exc.detail, extra={"request_id": req_id})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "detail": exc.detail, "request_id": req_id},
        )

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", None)
        errors = [
            {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "validation_error", "detail": errors, "request_id": req_id},
        )

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled exception", extra={"request_id": req_id})
        return JSONResponse(
            status_code=500,
            content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
        )

    application.include_router(system_controller.router)
    application.include_router(member_controller.router)
    application.include_router(group_controller.router)
    return application


app = create_app()


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_level="info")
