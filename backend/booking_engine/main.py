import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from .config import get_settings
from .domain.errors import StorageUnavailableError
from .routers import availability, calendar, days, hours, modifications
from .utils.request_id import REQUEST_ID_HEADER, RequestIdLogFilter, resolve_request_id, set_request_id

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdLogFilter) for f in handler.filters):
            handler.addFilter(RequestIdLogFilter())


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def storage_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    operation = getattr(exc, "operation", "unknown")
    logger.error("storage unavailable during %s on %s %s", operation, request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"error": "storage_unavailable", "operation": operation}},
    )


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Booking Capacity API")
    application.middleware("http")(request_id_middleware)
    application.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)

    @application.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    application.include_router(hours.router)
    application.include_router(days.router)
    application.include_router(availability.router)
    application.include_router(calendar.router)
    application.include_router(modifications.router)
    return application


app = create_app()
