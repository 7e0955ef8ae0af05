"""
Common schemas.
"""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True


class StoreHealthResponse(BaseModel):
    """Store connection check response."""
    ok: bool
    message: str = ""


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
