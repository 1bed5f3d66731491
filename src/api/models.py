"""
API response models.

Pydantic models for OpenAPI schema generation. Registration bodies are
free-form (the accepted keys come from configuration), so only the error
shape is modelled.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    kind: str = Field(..., description="Error kind, e.g. Conflict or InvalidInput")
