from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from schemas.common import Pagination


class DialplanBase(BaseModel):
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    context: str = "default"
    domain_id: Optional[int] = None
    extension_pattern: Optional[str] = None
    condition_field: str = "destination_number"
    condition_expression: Optional[str] = None
    actions: list[dict[str, Any]] = []
    anti_actions: list[dict[str, Any]] = []
    variables: dict[str, Any] = {}
    priority: int = 0
    is_active: bool = True
    is_template: bool = False


class DialplanCreate(DialplanBase):
    pass


class DialplanUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    context: Optional[str] = None
    domain_id: Optional[int] = None
    extension_pattern: Optional[str] = None
    condition_field: Optional[str] = None
    condition_expression: Optional[str] = None
    actions: Optional[list[dict[str, Any]]] = None
    anti_actions: Optional[list[dict[str, Any]]] = None
    variables: Optional[dict[str, Any]] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None
    is_template: Optional[bool] = None


# переопределения при создании из шаблона
class DialplanFromTemplate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    context: Optional[str] = None
    domain_id: Optional[int] = None
    extension_pattern: Optional[str] = None
    condition_expression: Optional[str] = None
    actions: Optional[list[dict[str, Any]]] = None
    variables: Optional[dict[str, Any]] = None
    priority: Optional[int] = None


class DialplanResponse(DialplanBase):
    id: int
    actions: Optional[list[dict[str, Any]]] = None
    anti_actions: Optional[list[dict[str, Any]]] = None
    variables: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DialplanListResponse(BaseModel):
    data: list[DialplanResponse]
    pagination: Pagination


class DialplanStats(BaseModel):
    total: int
    active: int
    inactive: int
    templates: int
    by_context: dict[str, int]


class DialplanPriorityItem(BaseModel):
    id: int
    priority: int
