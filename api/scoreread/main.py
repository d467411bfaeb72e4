from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
import os
import traceback
from scoreread.core.config import settings
from scoreread.core.database import engine, init_db
from scoreread.core.logging_config import setup_logging
from scoreread.core.exceptions import (
    ScoreReadException,
    ValidationError,
    NotFoundError,
    ConflictError,
    NoCandidatesAvailable,
    PersistenceFailure,
)
from scoreread.services.practice_repository import PracticeRepository
from scoreread.services.practice_session_service import PracticeSessionManager

# Import models to register them with SQLModel
from scoreread import models  # noqa: F401

# Import API router
from scoreread.api.v1 import api_router

logger = logging.getLogger(__name__)

# Check if we're in development mode
IS_DEVELOPMENT = os.getenv("ENVIRONMENT", "production").lower() in ("development", "dev", "local")

app = FastAPI(title="ScoreRead Practice API", version="1.0.0")

# One repository and one session manager per process
app.state.repository = PracticeRepository(engine, sleep_gate_hour=settings.sleep_gate_hour)
app.state.session_manager = PracticeSessionManager(app.state.repository, settings)


# Add exception handler for validation errors to log details
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with full details for debugging."""
    body = await request.body()
    logger.error(f"Validation error on {request.method} {request.url.path}")
    logger.error(f"Request body: {body.decode('utf-8') if body else 'empty'}")
    logger.error(f"Validation errors: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(), "body": body.decode('utf-8') if body else None},
    )


# Add exception handler for custom application exceptions
@app.exception_handler(ScoreReadException)
async def scoreread_exception_handler(request: Request, exc: ScoreReadException):
    """Handle custom application exceptions."""
    content = {"detail": str(exc), "type": type(exc).__name__}
    
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NoCandidatesAvailable):
        # Nothing to practice: clients should prompt the user to create spots
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        content["session_type"] = exc.session_type
    elif isinstance(exc, PersistenceFailure):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        content["operation"] = exc.operation
        content["retryable"] = True
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    
    logger.warning(f"Application exception on {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(status_code=status_code, content=content)


# Add global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and return a JSON 500."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    
    # In development, show full error details
    if IS_DEVELOPMENT:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
                "traceback": traceback.format_exc()
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal server error occurred. Please try again later.",
            "type": "InternalServerError"
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Configure logging and initialize the database on startup."""
    setup_logging(settings.log_level)
    init_db()
    logger.info("ScoreRead practice API started")


@app.get("/")
async def root():
    return {
        "message": "ScoreRead Practice API",
        "status": "running",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
