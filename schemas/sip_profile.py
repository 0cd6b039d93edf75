from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from models.sip_profile import ProfileType
from schemas.common import Pagination


class SipProfileBase(BaseModel):
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    type: ProfileType = ProfileType.CUSTOM
    domain_id: Optional[int] = None
    bind_ip: Optional[str] = None
    bind_port: int = 5060
    tls_port: Optional[int] = None
    rtp_ip: Optional[str] = None
    ext_rtp_ip: Optional[str] = None
    ext_sip_ip: Optional[str] = None
    sip_port: Optional[int] = None
    settings: dict[str, Any] = {}
    advanced_settings: dict[str, Any] = {}
    security_settings: dict[str, Any] = {}
    codec_settings: dict[str, Any] = {}
    is_active: bool = True
    is_default: bool = False
    order: int = 0


class SipProfileCreate(SipProfileBase):
    pass


class SipProfileUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ProfileType] = None
    domain_id: Optional[int] = None
    bind_ip: Optional[str] = None
    bind_port: Optional[int] = None
    tls_port: Optional[int] = None
    rtp_ip: Optional[str] = None
    ext_rtp_ip: Optional[str] = None
    ext_sip_ip: Optional[str] = None
    sip_port: Optional[int] = None
    settings: Optional[dict[str, Any]] = None
    advanced_settings: Optional[dict[str, Any]] = None
    security_settings: Optional[dict[str, Any]] = None
    codec_settings: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    order: Optional[int] = None


class SipProfileResponse(SipProfileBase):
    id: int
    settings: Optional[dict[str, Any]] = None
    advanced_settings: Optional[dict[str, Any]] = None
    security_settings: Optional[dict[str, Any]] = None
    codec_settings: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SipProfileListResponse(BaseModel):
    data: list[SipProfileResponse]
    pagination: Pagination


class SipProfileStats(BaseModel):
    total: int
    by_type: dict[str, int]
    active: int
    inactive: int


class SipProfileTestResult(BaseModel):
    success: bool
    profile: str
    status: str
    registrations: int
