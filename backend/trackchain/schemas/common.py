"""Common schemas used across the application."""

from pydantic import BaseModel


class OperationResult(BaseModel):
    """Boolean acknowledgement for operations that assign no id."""
    success: bool = True


class IdResponse(BaseModel):
    """Returned by operations that assign a sequential id."""
    id: int
