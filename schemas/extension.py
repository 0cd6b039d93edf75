from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from schemas.common import Pagination


class ExtensionBase(BaseModel):
    extension_number: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    domain_id: Optional[int] = None
    profile_id: Optional[int] = None
    user_id: Optional[int] = None
    effective_caller_id_name: Optional[str] = None
    effective_caller_id_number: Optional[str] = None
    outbound_caller_id_name: Optional[str] = None
    outbound_caller_id_number: Optional[str] = None
    directory_settings: dict[str, Any] = {}
    dial_settings: dict[str, Any] = {}
    voicemail_settings: dict[str, Any] = {}
    is_active: bool = True


class ExtensionCreate(ExtensionBase):
    password: str


class BasicExtensionCreate(BaseModel):
    extension_number: str
    display_name: str
    password: str
    domain_id: Optional[int] = None


class ExtensionUpdate(BaseModel):
    extension_number: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    domain_id: Optional[int] = None
    profile_id: Optional[int] = None
    user_id: Optional[int] = None
    password: Optional[str] = None
    effective_caller_id_name: Optional[str] = None
    effective_caller_id_number: Optional[str] = None
    outbound_caller_id_name: Optional[str] = None
    outbound_caller_id_number: Optional[str] = None
    directory_settings: Optional[dict[str, Any]] = None
    dial_settings: Optional[dict[str, Any]] = None
    voicemail_settings: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None


# Пароль в ответах не возвращается
class ExtensionResponse(ExtensionBase):
    id: int
    directory_settings: Optional[dict[str, Any]] = None
    dial_settings: Optional[dict[str, Any]] = None
    voicemail_settings: Optional[dict[str, Any]] = None
    dial_string: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExtensionListResponse(BaseModel):
    data: list[ExtensionResponse]
    pagination: Pagination


class ExtensionStats(BaseModel):
    total: int
    active: int
    inactive: int
    with_voicemail: int
    with_call_forwarding: int
    by_domain: dict[str, int]
