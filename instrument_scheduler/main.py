# instrument_scheduler/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from instrument_scheduler.config import settings
from instrument_scheduler.database import engine, Base
from instrument_scheduler.errors import SchedulerError
from instrument_scheduler.routes import admin, reservations, slots, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create the database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Instrument Scheduler",
    description="Reservations of 10-minute slots on a shared lab instrument",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulerError)
async def scheduler_error_handler(request: Request, exc: SchedulerError):
    content = {"message": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        location = error.get("loc", ())
        field = next((str(part) for part in reversed(location) if isinstance(part, str)), "request")
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    in_body = any(error.get("loc", ("",))[0] == "body" for error in exc.errors())
    message = "Invalid reservation data" if in_body else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Registering Routers
app.include_router(users.router)
app.include_router(reservations.router)
app.include_router(slots.router)
app.include_router(admin.router)

@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the Instrument Scheduler"}
