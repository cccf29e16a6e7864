from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any
from app.config.sentry import capture_exception, add_breadcrumb
from app.logging.utils import get_app_logger
from app.middlewares.request_context import request_context

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

logger = get_app_logger(__name__)

DEBUG = configs.DEBUG


def _error_payload(message: str, **extra) -> dict:
    payload = {"success": False, "message": message}
    payload.update(extra)
    return payload


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with production-safe messages."""
    request_context.module_name = 'middleware_handlers'
    logger.warning(f"validation_error | method={request.method} path={request.url.path} errors={exc.errors()}")

    if not DEBUG:
        payload = _error_payload("Invalid request data")
    else:
        # "field_path: error_message" per error
        error_messages = []
        for err in exc.errors():
            field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
            error_messages.append(f"{field_path}: {err.get('msg', 'Invalid input')}")

        if len(error_messages) == 1:
            payload = _error_payload(error_messages[0])
        else:
            payload = _error_payload("Validation errors", errors=error_messages)

    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


async def _general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with production-safe messages."""
    request_context.module_name = 'middleware_handlers'
    logger.error(
        f"unhandled_exception | method={request.method} path={request.url.path} exception_type={type(exc).__name__} exception_message={str(exc)}",
        exc_info=True,
    )

    add_breadcrumb(
        message=f"Unhandled exception on {request.method} {request.url.path}",
        category="exception",
        level="error",
        data={"exception_type": type(exc).__name__}
    )
    capture_exception(exc)

    if not DEBUG:
        payload = _error_payload("Something went wrong")
    else:
        payload = _error_payload(f"Internal server error: {str(exc)}")

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def _http_exception_handler(request: Request, exc: Any):
    """Handle HTTP exceptions with production-safe messages."""
    request_context.module_name = 'middleware_handlers'
    status_code = getattr(exc, 'status_code', status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = getattr(exc, 'detail', str(exc))
    # 5xx as errors, 4xx as warnings
    if status_code >= 500:
        logger.error(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={detail}")
        capture_exception(exc)
    else:
        logger.warning(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={detail}")

    if not DEBUG:
        if status_code == 404:
            message = "Resource not found"
        elif status_code == 405:
            message = "Method not allowed"
        elif 400 <= status_code < 500:
            message = "Invalid request"
        else:
            message = "Something went wrong"
    else:
        message = detail

    return JSONResponse(status_code=status_code, content=_error_payload(message))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
