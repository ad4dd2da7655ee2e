"""
API models and schemas for the FastAPI application.

Holds the Book entity, the request/response shapes built around it, the
field rules shared between them, and the hand-written mappings between
those shapes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

TEXT_MIN_LENGTH = 2
TEXT_MAX_LENGTH = 100
YEAR_MIN = 1450
YEAR_MAX = 2100


def current_year() -> int:
    """Current calendar year (UTC)."""
    return datetime.now(timezone.utc).year


def check_text(label: str, value: Optional[str]) -> str:
    """Apply the required + 2..100 length rule shared by title and author."""
    if value is None or not value.strip():
        raise ValueError(f"{label} is required.")
    if not TEXT_MIN_LENGTH <= len(value) <= TEXT_MAX_LENGTH:
        raise ValueError(
            f"{label} must be between {TEXT_MIN_LENGTH} and {TEXT_MAX_LENGTH} characters."
        )
    return value


def check_year(value: Optional[int]) -> int:
    """Apply the publication year rules: required, in range, not in the future."""
    if value is None:
        raise ValueError("Year is required.")
    if not YEAR_MIN <= value <= YEAR_MAX:
        raise ValueError(f"Year must be between {YEAR_MIN} and {YEAR_MAX}.")
    if value > current_year():
        raise ValueError("Year must not be in the future.")
    return value


class Book(BaseModel):
    """
    Persistent book entity.

    Validated on construction and on every assignment, so an instance always
    satisfies the field rules before it can reach the store.
    """
    id: Optional[int] = Field(None, description="System-assigned book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    year: int = Field(..., description="Publication year")

    model_config = {"validate_assignment": True}

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return check_text("Title", v)

    @field_validator('author')
    @classmethod
    def validate_author(cls, v):
        return check_text("Author", v)

    @field_validator('year')
    @classmethod
    def validate_year(cls, v):
        return check_year(v)


class BookCreateRequest(BaseModel):
    """Request body for creating or fully replacing a book."""
    title: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("title", "Title"),
        validate_default=True,
        description="Book title (2-100 characters)",
    )
    author: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("author", "Author"),
        validate_default=True,
        description="Book author (2-100 characters)",
    )
    year: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("year", "Year"),
        validate_default=True,
        description="Publication year (1450 up to the current year)",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "The Pragmatic Programmer",
                "author": "Andrew Hunt",
                "year": 1999
            }
        }
    }

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return check_text("Title", v)

    @field_validator('author')
    @classmethod
    def validate_author(cls, v):
        return check_text("Author", v)

    @field_validator('year')
    @classmethod
    def validate_year(cls, v):
        return check_year(v)


class BookResponse(BaseModel):
    """Book response model for API."""
    id: int = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    year: int = Field(..., description="Publication year")


class LoginRequest(BaseModel):
    """Login credentials."""
    username: str = Field(..., validation_alias=AliasChoices("username", "Username"))
    password: str = Field(..., validation_alias=AliasChoices("password", "Password"))


class TokenResponse(BaseModel):
    """Issued bearer token."""
    token: str = Field(..., description="Signed JWT bearer token")


class FieldError(BaseModel):
    """A single field-level validation failure."""
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")
    errors: Optional[List[FieldError]] = Field(None, description="Field-level validation failures")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")


# Locations FastAPI prefixes onto request validation errors
_LOCATION_ROOTS = ("body", "path", "query", "header", "cookie")


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Tuple[str, str]]:
    """
    Flatten pydantic/FastAPI error dicts into (field, message) pairs.

    Messages raised from our own validators are reported verbatim,
    without pydantic's "Value error, " prefix.
    """
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOCATION_ROOTS]
        field = ".".join(loc) or "body"
        message = err.get("msg", "Invalid value")
        if err.get("type") == "value_error":
            cause = (err.get("ctx") or {}).get("error")
            if cause is not None:
                message = str(cause)
        result.append((field, message))
    return result


def validation_errors(model: Type[BaseModel], data: Any) -> List[Tuple[str, str]]:
    """
    Validate raw data against a request model.

    Returns:
        List of (field, message) failures; empty when the data is valid
    """
    try:
        model.model_validate(data)
    except ValidationError as e:
        return format_validation_errors(e.errors())
    return []


def to_book(request: BookCreateRequest) -> Book:
    """Build a new, not yet persisted Book from a request."""
    return Book(title=request.title, author=request.author, year=request.year)


def to_view(book: Book) -> BookResponse:
    """Project a stored Book onto its response shape."""
    return BookResponse(id=book.id, title=book.title, author=book.author, year=book.year)


def apply_request(request: BookCreateRequest, book: Book) -> Book:
    """Overwrite every mutable field of book from request."""
    book.title = request.title
    book.author = request.author
    book.year = request.year
    return book
