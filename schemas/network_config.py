from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from models.network_config import NetworkConfigStatus


class NetworkConfigUpdate(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    external_ip: Optional[str] = None
    bind_server_ip: Optional[str] = None
    domain: Optional[str] = None
    sip_port: Optional[int] = None
    external_sip_port: Optional[int] = None
    tls_port: Optional[int] = None
    external_tls_port: Optional[int] = None
    rtp_start_port: Optional[int] = None
    rtp_end_port: Optional[int] = None
    external_rtp_ip: Optional[str] = None
    stun_server: Optional[str] = None
    stun_enabled: Optional[bool] = None
    global_codec_prefs: Optional[str] = None
    outbound_codec_prefs: Optional[str] = None
    transport_protocols: Optional[list[str]] = None
    enable_tls: Optional[bool] = None
    nat_detection: Optional[bool] = None
    auto_nat: Optional[bool] = None
    auto_apply: Optional[bool] = None
    config_metadata: Optional[dict[str, Any]] = Field(default=None, alias="metadata")

    class Config:
        populate_by_name = True


class NetworkConfigResponse(BaseModel):
    id: int
    config_name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    external_ip: Optional[str] = None
    bind_server_ip: Optional[str] = None
    domain: Optional[str] = None
    sip_port: int
    external_sip_port: Optional[int] = None
    tls_port: int
    external_tls_port: Optional[int] = None
    rtp_start_port: int
    rtp_end_port: int
    external_rtp_ip: Optional[str] = None
    stun_server: Optional[str] = None
    stun_enabled: bool
    global_codec_prefs: Optional[str] = None
    outbound_codec_prefs: Optional[str] = None
    transport_protocols: list[str] = []
    enable_tls: bool
    nat_detection: bool
    auto_nat: bool
    status: NetworkConfigStatus
    is_active: bool
    is_default: bool
    auto_apply: bool
    config_metadata: Optional[dict[str, Any]] = Field(
        default=None, serialization_alias="metadata"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_applied_at: Optional[datetime] = None
    last_applied_by: Optional[str] = None

    class Config:
        from_attributes = True


class ApplyResult(BaseModel):
    success: bool
    message: str
    errors: list[str] = []
    warnings: list[str] = []
    applied_at: Optional[datetime] = None


class IpDetectionResult(BaseModel):
    detected_ip: Optional[str] = None
    method: str
    success: bool
    error: Optional[str] = None


class NetworkConfigStatusResponse(BaseModel):
    id: int
    status: NetworkConfigStatus
    last_applied_at: Optional[datetime] = None
    last_applied_by: Optional[str] = None
    is_valid: bool
    errors: list[str]
    warnings: list[str]
