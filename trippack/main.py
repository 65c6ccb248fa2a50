"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from trippack.api import auth, folders, members, tasks, trips, websocket
from trippack.config import get_settings
from trippack.errors import InternalError, TripPackError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting TripPack API ({settings.environment})")
    yield


app = FastAPI(
    title="TripPack API",
    description="Collaborative trip planning with shared packing lists",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:3001",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(TripPackError)
async def trippack_error_handler(request: Request, exc: TripPackError) -> JSONResponse:
    """Render application errors with their HTTP status."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log store failures and hide their details from the caller."""
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


# Register routers
app.include_router(auth.router)
app.include_router(trips.router)
app.include_router(members.router)
app.include_router(folders.router)
app.include_router(tasks.router)
app.include_router(websocket.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
