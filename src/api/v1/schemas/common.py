"""Common Pydantic schemas shared across the API."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "CHALLENGE_INVALID",
                "message": "Challenge not valid: EXPIRED",
                "details": {"reason": "EXPIRED"},
            }
        },
    )

    error_code: str
    message: str
    details: Any | None = None


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries documenting the error body."""
    descriptions = {
        400: "Request rejected",
        401: "Missing or invalid session token",
        403: "Not allowed for this caller",
        404: "Profile not found",
        409: "Conflicts with another profile",
    }
    return {
        code: {"model": ErrorResponse, "description": descriptions.get(code, "Error")}
        for code in status_codes
    }
