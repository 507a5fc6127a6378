"""Common Pydantic v2 schemas shared across the API: pagination and error bodies."""

from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Query parameters for paginated endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")


class PaginationMeta(BaseModel):
    """Pagination metadata included in paginated responses."""

    total: int = Field(description="Total number of items")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def for_page(cls, total: int, params: PaginationParams) -> "PaginationMeta":
        """Build metadata for a page of ``params.page_size`` items; always at least one page."""
        total_pages = max(1, -(-total // params.page_size))
        return cls(total=total, page=params.page, page_size=params.page_size, total_pages=total_pages)


class FieldError(BaseModel):
    """One rejected input field."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error body returned for rejected vendor address input."""

    detail: str = Field(description="Human-readable error message")
    errors: list[FieldError] = Field(default_factory=list, description="Per-field validation errors")
