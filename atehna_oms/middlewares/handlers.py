from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from atehna_oms.config.sentry import add_breadcrumb, capture_exception
from atehna_oms.core.constants import Messages
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.handlers")


def _debug_enabled(request: Request) -> bool:
    """DEBUG=false means production: 5xx details are hidden."""
    configs = getattr(request.app.state, "configs", None)
    return bool(getattr(configs, "DEBUG", True))


def _validation_message(exc: RequestValidationError) -> str:
    """First user-facing message of a validation failure."""
    for err in exc.errors():
        ctx_error = (err.get("ctx") or {}).get("error")
        if isinstance(ctx_error, ValueError) and str(ctx_error):
            return str(ctx_error)
    return Messages.INVALID_REQUEST


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"validation_error | method={request.method} url={str(request.url)} errors={exc.errors()}")

    payload = {"message": _validation_message(exc)}
    if _debug_enabled(request):
        payload["errors"] = [
            f"{' -> '.join(str(loc) for loc in err.get('loc', []))}: {err.get('msg', 'Invalid input')}"
            for err in exc.errors()
        ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)


async def _http_exception_handler(request: Request, exc: Any):
    status_code = getattr(exc, 'status_code', status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = getattr(exc, 'detail', str(exc))

    # 5xx are errors with traceback, 4xx are warnings
    if status_code >= 500:
        logger.error(f"http_exception | method={request.method} url={str(request.url)} status_code={status_code} detail={detail}")
        add_breadcrumb(
            message=f"HTTP {status_code} error on {request.method} {request.url}",
            category="http",
            level="error",
            data={"status_code": status_code, "detail": detail},
        )
        capture_exception(exc)
    else:
        logger.warning(f"http_exception | method={request.method} url={str(request.url)} status_code={status_code} detail={detail}")

    payload = dict(detail) if isinstance(detail, dict) else {"message": detail}
    if status_code >= 500 and not _debug_enabled(request):
        payload["message"] = Messages.SERVER_ERROR
    return JSONResponse(status_code=status_code, content=payload)


async def _general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"unhandled_exception | method={request.method} url={str(request.url)} exception_type={type(exc).__name__} exception_message={str(exc)}",
        exc_info=True,
    )
    add_breadcrumb(
        message=f"Unhandled exception on {request.method} {request.url}",
        category="exception",
        level="error",
        data={"exception_type": type(exc).__name__, "exception_message": str(exc)},
    )
    capture_exception(exc)

    if _debug_enabled(request):
        payload = {"message": f"{Messages.SERVER_ERROR} {str(exc)}"}
    else:
        payload = {"message": Messages.SERVER_ERROR}
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
