"""Global exception handlers for errors raised before a stream starts.

Once a streaming response has sent its headers these handlers no longer
apply; a failing stream simply ends without its [DONE] frame.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crm_assistant.observability.constants import CORRELATION_ID_HEADER, LogEvents
from crm_assistant.observability.context import get_correlation_id
from crm_assistant.observability.logger import get_logger
from crm_assistant.observability.sanitizer import sanitize
from crm_assistant.schemas.responses import ErrorResponse

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Erro ao processar mensagem"


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Reject a malformed body before anything downstream runs."""
        # 'ctx' may hold non-serializable objects (like ValueError)
        errors = [{k: v for k, v in err.items() if k not in ("ctx", "input")} for err in exc.errors()]
        error_messages = [
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in errors
        ]

        logger.warning(
            LogEvents.ERROR_VALIDATION,
            path=str(request.url.path),
            method=request.method,
            errors=error_messages,
            body=sanitize(exc.body),
        )

        body = ErrorResponse(
            error="request_malformed",
            message="; ".join(error_messages) or "Malformed request body",
            details=errors,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(),
            headers={CORRELATION_ID_HEADER: get_correlation_id()},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Generic 500 without internal details."""
        logger.error(
            LogEvents.ERROR_UNHANDLED,
            path=str(request.url.path),
            method=request.method,
            error_type=type(exc).__name__,
            error_message=str(exc),
            exc_info=True,
        )

        body = ErrorResponse(error="internal_error", message=GENERIC_ERROR_MESSAGE)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(),
            headers={CORRELATION_ID_HEADER: get_correlation_id()},
        )
