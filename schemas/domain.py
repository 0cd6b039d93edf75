from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from schemas.common import Pagination


class DomainBase(BaseModel):
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    max_users: int = 100
    max_extensions: int = 1000
    max_concurrent_calls: int = 50
    settings: dict[str, Any] = {}
    billing_settings: dict[str, Any] = {}
    admin_email: str
    admin_phone: Optional[str] = None
    timezone: str = "UTC"
    language: str = "en"


class DomainCreate(DomainBase):
    pass


class DomainUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    max_users: Optional[int] = None
    max_extensions: Optional[int] = None
    max_concurrent_calls: Optional[int] = None
    settings: Optional[dict[str, Any]] = None
    billing_settings: Optional[dict[str, Any]] = None
    admin_email: Optional[str] = None
    admin_phone: Optional[str] = None
    timezone: Optional[str] = None
    language: Optional[str] = None


class DomainResponse(DomainBase):
    id: int
    settings: Optional[dict[str, Any]] = None
    billing_settings: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DomainListResponse(BaseModel):
    data: list[DomainResponse]
    pagination: Pagination


class DomainStats(BaseModel):
    total: int
    active: int
    inactive: int


class DomainUsage(BaseModel):
    current: int
    max: int
    percentage: int
