from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from schemas.common import Pagination


class GatewayBase(BaseModel):
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    profile_id: int
    domain_id: Optional[int] = None
    gateway_host: str
    gateway_port: int = 5060
    username: Optional[str] = None
    realm: Optional[str] = None
    from_user: Optional[str] = None
    from_domain: Optional[str] = None
    proxy: Optional[str] = None
    register_enabled: bool = Field(default=True, alias="register")
    register_transport: str = "udp"
    expire_seconds: int = 3600
    retry_seconds: int = 30
    caller_id_in_from: bool = False
    extension: Optional[str] = None
    gateway_config: dict[str, Any] = {}
    auth_settings: dict[str, Any] = {}
    routing_settings: dict[str, Any] = {}
    is_active: bool = True
    order: int = 0

    class Config:
        populate_by_name = True


class GatewayCreate(GatewayBase):
    password: Optional[str] = None


class GatewayUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    profile_id: Optional[int] = None
    domain_id: Optional[int] = None
    gateway_host: Optional[str] = None
    gateway_port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    realm: Optional[str] = None
    from_user: Optional[str] = None
    from_domain: Optional[str] = None
    proxy: Optional[str] = None
    register_enabled: Optional[bool] = Field(default=None, alias="register")
    register_transport: Optional[str] = None
    expire_seconds: Optional[int] = None
    retry_seconds: Optional[int] = None
    caller_id_in_from: Optional[bool] = None
    extension: Optional[str] = None
    gateway_config: Optional[dict[str, Any]] = None
    auth_settings: Optional[dict[str, Any]] = None
    routing_settings: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None
    order: Optional[int] = None

    class Config:
        populate_by_name = True


class GatewayResponse(GatewayBase):
    id: int
    gateway_config: Optional[dict[str, Any]] = None
    auth_settings: Optional[dict[str, Any]] = None
    routing_settings: Optional[dict[str, Any]] = None
    connection_string: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GatewayListResponse(BaseModel):
    data: list[GatewayResponse]
    pagination: Pagination


class GatewayStats(BaseModel):
    total: int
    active: int
    inactive: int
    registered: int
    by_profile: dict[str, int]


class GatewayOrderItem(BaseModel):
    id: int
    order: int


class GatewayTestResult(BaseModel):
    success: bool
    gateway: str
    connection_string: str
    errors: list[str]
    registration: Optional[dict[str, str]] = None
    message: str
