"""
Contact Lists Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from contactlists.config import settings
from contactlists.database import init_db
from contactlists.core.exceptions import ContactListsException, ValidationError
from contactlists.schemas.common import ErrorResponse, HealthResponse

# Import all API routers
from contactlists.api import lists, contacts, custom_fields, imports

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title="Contact Lists API",
    description="Contact lists, subscriptions and contact activity",
    version=VERSION,
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, errors=exc.errors).model_dump(),
    )


@app.exception_handler(ContactListsException)
async def contact_lists_exception_handler(request: Request, exc: ContactListsException) -> JSONResponse:
    """Map domain errors to their HTTP status with a user-safe message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message).model_dump(exclude_none=True),
    )


# Include all routers
app.include_router(lists.router)
app.include_router(contacts.router)
app.include_router(custom_fields.router)
app.include_router(imports.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Contact Lists API is running",
        "version": VERSION,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(version=VERSION)
