from typing import Any, Optional
from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str
    details: Optional[dict[str, Any]] = None


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str] = []
