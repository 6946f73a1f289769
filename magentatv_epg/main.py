from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from magentatv_epg.config import setup_logging
from magentatv_epg.errors import UpstreamError
from magentatv_epg.schemas import ErrorDetail, StandardErrorResponse
from magentatv_epg.services import MagentaGrabber
from magentatv_epg.utils.timezone import utc_now_iso

from magentatv_epg.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting MagentaTV EPG Adapter...")

    try:
        app.state.grabber = MagentaGrabber()
        logger.info("MagentaTV EPG Adapter started successfully")
    except Exception as e:
        logger.error(f"Failed to start MagentaTV EPG Adapter: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down MagentaTV EPG Adapter...")
    try:
        await app.state.grabber.aclose()
    except Exception as e:
        logger.error(f"Error while closing HTTP clients: {e}", exc_info=True)
    logger.info("MagentaTV EPG Adapter stopped")


app = FastAPI(
    title="MagentaTV EPG Adapter",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)


@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError):
    """Report upstream failures as 503 (transient) or 502 (terminal)"""
    logger.error(f"Upstream failure for {request.method} {request.url.path}: {exc}")

    status_code = 503 if exc.retryable else 502
    response = StandardErrorResponse(
        timestamp=utc_now_iso(),
        error=ErrorDetail(
            code="UPSTREAM_UNAVAILABLE" if exc.retryable else "UPSTREAM_ERROR",
            message=str(exc),
            context={"service": exc.service, "status_code": exc.status_code},
        ),
    )
    return JSONResponse(status_code=status_code, content=response.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    # Create a properly serializable error response
    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
