# salon_scheduler/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salon_scheduler.config import LOG_LEVEL
from salon_scheduler.db import init_db
from salon_scheduler.deps import background_notifier
from salon_scheduler.errors import (
    BookingConflictError,
    BookingValidationError,
    NotFoundError,
    Reason,
)
from salon_scheduler.routers import appointments_routes, professionals_routes, public_routes

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)

# reasons that describe a clash with someone else's time rather than a bad request
CONFLICT_REASONS = {Reason.double_booking, Reason.time_block_conflict}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    background_notifier.shutdown()


app = FastAPI(lifespan=lifespan)

app.include_router(appointments_routes.router)
app.include_router(professionals_routes.router)
app.include_router(public_routes.router)


@app.exception_handler(BookingValidationError)
def booking_validation_handler(request: Request, exc: BookingValidationError):
    violation = exc.violation
    status_code = 409 if violation.reason in CONFLICT_REASONS else 422
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": violation.message,
            "reason": violation.reason.value,
            "context": violation.model_dump(mode="json")["context"],
        },
    )


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BookingConflictError)
def conflict_handler(request: Request, exc: BookingConflictError):
    logger.warning("Booking write conflict on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc), "reason": "write_conflict"})


@app.get("/health")
def health_check():
    return {"status": "ok"}
