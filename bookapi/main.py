"""
FastAPI main application for the Book Management API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Path, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookapi.auth import JwtTokenIssuer, check_credentials, get_token_issuer, require_bearer_token
from bookapi.config import config
from bookapi.database import MongoBookStore
from bookapi.models import (
    BookCreateRequest, BookResponse, ErrorResponse, FieldError,
    HealthResponse, LoginRequest, TokenResponse, format_validation_errors
)
from bookapi.service import BookService
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Global services, set up in lifespan
book_store: Optional[MongoBookStore] = None
book_service: Optional[BookService] = None

INTERNAL_ERROR_MESSAGE = "An internal server error occurred. Please try again later."

# MongoDB stores integers as signed 64-bit values
BOOK_ID_MIN = -(2 ** 63)
BOOK_ID_MAX = 2 ** 63 - 1


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global book_store, book_service

    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )
    logger.info("Starting Book Management API")

    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        database = client[config.mongodb_database]

        # Test connection
        await database.command("ping")
        logger.info("Database connection established", database=config.mongodb_database)

        book_store = MongoBookStore(
            database,
            books_collection=config.books_collection,
            counters_collection=config.counters_collection
        )
        book_service = BookService(book_store)

    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        client.close()
        raise

    yield

    # Shutdown
    logger.info("Shutting down Book Management API")
    book_service = None
    book_store = None
    client.close()


# Create FastAPI application
app = FastAPI(
    title=config.api_title,
    description="""
    A REST API for managing book records.

    ## Features

    * **Books**: Create, read, update and delete book records
    * **Authentication**: Obtain a JWT bearer token from `/api/auth/login`

    ## Authentication

    When route protection is enabled, include the token in the Authorization header:

    ```
    Authorization: Bearer your_token_here
    ```
    """,
    version=config.api_version,
    lifespan=lifespan
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    """Turn any unhandled exception into a generic 500 response."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            method=request.method,
            path=request.url.path
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error=INTERNAL_ERROR_MESSAGE,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            ).model_dump(exclude_none=True)
        )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status code and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=elapsed_ms
    )
    return response


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 with field-level messages."""
    failures = format_validation_errors(exc.errors())
    logger.warning("Request validation failed", path=request.url.path, errors=failures)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="Validation failed",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=[FieldError(field=field, message=message) for field, message in failures]
        ).model_dump(exclude_none=True)
    )


def get_book_service() -> BookService:
    """Dependency returning the running book service."""
    if book_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return book_service


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if book_store:
        health_info = await book_store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=config.api_version,
        database_status=db_status
    )


# Auth endpoints
@app.post(
    "/api/auth/login",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Auth"]
)
async def login(
    credentials: Optional[LoginRequest] = Body(None),
    issuer: JwtTokenIssuer = Depends(get_token_issuer)
):
    """
    Exchange the built-in account's credentials for a bearer token.

    - **username**: must be `admin`
    - **password**: must be `password`
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Login request body is required"
        )

    if not check_credentials(credentials.username, credentials.password):
        logger.warning("Failed login attempt", username=credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("User logged in", username=credentials.username)
    return TokenResponse(token=issuer.generate_token(credentials.username))


# Books endpoints
books_router = APIRouter(
    prefix="/api/books",
    tags=["Books"],
    dependencies=[Depends(require_bearer_token)],
    responses={400: {"model": ErrorResponse}}
)


@books_router.get("", response_model=List[BookResponse])
async def list_books(service: BookService = Depends(get_book_service)):
    """Get all books."""
    return await service.list_all()


@books_router.get(
    "/{book_id}",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_book(
    book_id: int = Path(..., ge=BOOK_ID_MIN, le=BOOK_ID_MAX),
    service: BookService = Depends(get_book_service)
):
    """
    Get a single book by ID.

    - **book_id**: Book identifier
    """
    book = await service.get_by_id(book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ID '{book_id}' not found"
        )
    return book


@books_router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    book_request: BookCreateRequest,
    request: Request,
    response: Response,
    service: BookService = Depends(get_book_service)
):
    """
    Create a book.

    - **title**: 2-100 characters
    - **author**: 2-100 characters
    - **year**: 1450 up to the current year
    """
    book = await service.create(book_request)
    response.headers["Location"] = str(request.url_for("get_book", book_id=book.id))
    return book


@books_router.put(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}}
)
async def update_book(
    book_request: BookCreateRequest,
    book_id: int = Path(..., ge=BOOK_ID_MIN, le=BOOK_ID_MAX),
    service: BookService = Depends(get_book_service)
):
    """
    Replace every field of an existing book.

    - **book_id**: Book identifier
    """
    if not await service.update(book_id, book_request):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ID '{book_id}' not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@books_router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}}
)
async def delete_book(
    book_id: int = Path(..., ge=BOOK_ID_MIN, le=BOOK_ID_MAX),
    service: BookService = Depends(get_book_service)
):
    """
    Delete a book.

    - **book_id**: Book identifier
    """
    if not await service.delete(book_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ID '{book_id}' not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


app.include_router(books_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bookapi.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
