# ptbooking/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import config
from .dependencies import get_settings_store
from .exceptions import (
    BookingError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ResourceBusyError,
    SettingsValidationError,
    ValidationError,
)
from .routers import auth, availability, reservations, settings

logging.basicConfig(level=config.log_level)
logger = logging.getLogger(__name__)

# Most specific class first
ERROR_STATUS = [
    (SettingsValidationError, 500),
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ResourceBusyError, 423),
    (ExternalServiceError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Single instance: a lock file present at startup belongs to a dead process
    get_settings_store().clear_stale_lock()
    yield


app = FastAPI(title="PT Studio Booking API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = next(
        (code for cls, code in ERROR_STATUS if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # 400 instead of FastAPI's default 422
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.include_router(auth.router)
app.include_router(settings.router)
app.include_router(availability.router)
app.include_router(reservations.router)


@app.get("/health")
def health():
    return {"status": "ok"}
