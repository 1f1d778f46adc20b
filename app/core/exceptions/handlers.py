from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
import traceback
from app.core.exceptions.errors import InvalidPayload, RecordNotFound, StorageFailure
from app.core.responses import send_error
from app.utils.logging import get_logger


def register_exception_handlers(app):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger = get_logger()
        logger.error(
            f"Unhandled exception for {request.method} {request.url}: {exc}\n"
            f"Traceback: {traceback.format_exc()}\n"
            f"User-Agent: {request.headers.get('user-agent')}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=send_error(
                message="An unexpected error occurred.",
                data={"detail": str(exc)},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logger = get_logger()
        raw_errors = exc.errors()
        logger.warning(
            f"Validation error for {request.method} {request.url}: {raw_errors}"
        )

        friendly_errors = {}
        for error in raw_errors:
            field = ".".join(map(str, error["loc"]))
            if field.startswith("body."):
                field = field.replace("body.", "")
            friendly_errors[field] = error["msg"]

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=send_error(
                message="Validation failed",
                data={"errors": friendly_errors},
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            ).model_dump(),
        )

    @app.exception_handler(RecordNotFound)
    async def record_not_found_handler(request: Request, exc: RecordNotFound):
        logger = get_logger()
        logger.warning(
            f"Record '{exc.record_id}' not found for {request.method} {request.url}"
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=send_error(
                message=str(exc),
                data={"id": exc.record_id},
                status_code=status.HTTP_404_NOT_FOUND,
            ).model_dump(),
        )

    @app.exception_handler(InvalidPayload)
    async def invalid_payload_handler(request: Request, exc: InvalidPayload):
        logger = get_logger()
        logger.warning(f"Invalid payload for {request.method} {request.url}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=send_error(
                message=str(exc),
                data={"id": exc.record_id},
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            ).model_dump(),
        )

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure):
        logger = get_logger()
        logger.error(
            f"Storage failure for {request.method} {request.url}: {exc}\n"
            f"Cause: {exc.__cause__!r}"
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=send_error(
                message="Record storage unavailable.",
                data={"operation": exc.operation},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            ).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger = get_logger()
        logger.warning(
            f"HTTP {exc.status_code} for {request.method} {request.url}: {exc.detail}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=send_error(
                message=exc.detail, status_code=exc.status_code
            ).model_dump(),
        )
