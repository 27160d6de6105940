"""Shared response schemas for the error envelope and list endpoints."""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """A single field-level or contextual error detail."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Structured error body returned inside every error response."""

    code: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str = Field(alias="requestId")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Top-level error envelope."""

    error: ErrorBody


# Documented on every v1 route so generated clients know the error shape
ERROR_RESPONSES: dict[int | str, dict] = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 422, 429, 502)
}
