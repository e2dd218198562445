# Essential imports
import time
import traceback
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from routers import admin, auth, history, users, weather

# Import all models so Base.metadata knows every table
import models
from core.database import Base, SessionLocal, engine

# Logging imports
from core.logging_config import setup_logging, get_logger
from utils.logger import log_request
from middleware import RequestIDMiddleware, get_request_id
from core.config import settings

from services.cleanup import ExpirySweeper
from services.weather_provider import OpenWeatherClient

# CORS imports
from fastapi.middleware.cors import CORSMiddleware

# Initialize logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)

sweeper = ExpirySweeper(SessionLocal, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    if settings.ENV != "testing":
        await sweeper.start()
    logger.info("Application startup complete", extra={"event": "startup"})
    yield
    await sweeper.stop()
    await app.state.weather_provider.close()
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title="WeatherHub API",
    description="Authenticated weather lookups with caching and per-user history",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# One HTTP client for the whole process
app.state.weather_provider = OpenWeatherClient(settings)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,                    # Auth cookies
    allow_methods=["*"],
    allow_headers=["*"],
)


# HTTP Request Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = (time.time() - start_time) * 1000  # ms
    log_request(
        logger,
        request.method,
        request.url.path,
        response.status_code,
        duration,
        client_ip=request.client.host if request.client else None,
    )
    return response


# Outermost, so the request log line carries the request ID
app.add_middleware(RequestIDMiddleware)


def error_body(request: Request, status_code: int, message: str, exc: Exception | None = None) -> dict:
    body = {
        "status": "fail" if status_code < 500 else "error",
        "message": message,
    }
    if not settings.is_production:
        body["request_id"] = get_request_id(request)
        if exc is not None:
            body["stack"] = "".join(traceback.format_exception(exc))
    return body


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    AppError and plain HTTPException alike become {"status", "message"}.
    """
    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc.detail}", extra={"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, str(exc.detail), exc),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Malformed input is a 400 like every other validation failure.
    """
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, status.HTTP_400_BAD_REQUEST, message),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch all unhandled exceptions, log them with their stack trace and
    return a generic 500.
    """
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!", exc)
    )


@app.get("/")
async def root():
    return {"message": "WeatherHub API - Welcome!"}


# Health check
@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "Healthy"}


# Including routers
app.include_router(auth.router)
app.include_router(weather.router)
app.include_router(history.router)
app.include_router(users.router)
app.include_router(admin.router)
