from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

import garage_sales.models  # noqa: F401 ensure models are imported so tables are known
from garage_sales import config
from garage_sales.api.routes import router as api_router
from garage_sales.db import Base, engine
from garage_sales.errors import (
    GarageSaleError, InsufficientStopsError, InvalidCoordinateError, InvalidFilterError,
    ListingNotFoundError, NotOwnerError, RequestTimeoutError, StoreUnavailableError,
    TooManyStopsError,
)
from garage_sales.utils import logger

_STATUS_BY_ERROR = {
    InvalidFilterError: 422,
    InsufficientStopsError: 422,
    TooManyStopsError: 422,
    InvalidCoordinateError: 422,
    ListingNotFoundError: 404,
    NotOwnerError: 403,
    StoreUnavailableError: 503,
    RequestTimeoutError: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure database tables are created on startup
    Base.metadata.create_all(bind=engine)
    if config.SCHEDULER_ENABLED:
        from garage_sales.scheduler import start_scheduler, stop_scheduler
        start_scheduler()
        yield
        stop_scheduler()
    else:
        yield


app = FastAPI(title="garage-sales", lifespan=lifespan)
app.include_router(api_router)


def error_payload(code, message):
    return {"error": {"code": code, "message": message}}


@app.exception_handler(GarageSaleError)
async def garage_sale_error_handler(request: Request, exc: GarageSaleError):
    status = next((s for cls, s in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=error_payload(exc.code, str(exc)))


def _describe(errors):
    parts = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=error_payload("invalid_request", _describe(exc.errors())))


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=error_payload("invalid_request", _describe(exc.errors())))
