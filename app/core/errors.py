from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.api.responses import problem_response
from app.core.exceptions import YfaError
from app.core.config import settings

logger = logging.getLogger(__name__)

def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    Every error leaves the service as a problem document.
    """
    @app.exception_handler(YfaError)
    async def yfa_exception_handler(request: Request, exc: YfaError):
        return problem_response(exc.status_code, exc.title, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        return problem_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles Pydantic validation errors.
        """
        return problem_response(
            422,
            "Input validation failed",
            "The request could not be parsed",
            errors=exc.errors()
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        detail = "An internal error occurred. Please try again later." if settings.is_production else str(exc)

        return problem_response(500, "Unexpected problem", detail)
