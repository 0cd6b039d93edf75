from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class ConfigCategoryCreate(BaseModel):
    name: str
    display_name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    order: int = 0
    is_active: bool = True


class ConfigCategoryResponse(ConfigCategoryCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConfigItemCreate(BaseModel):
    category: str
    name: str
    display_name: str
    description: Optional[str] = None
    value: Any = None
    default_value: Any = None
    data_type: str = "string"
    validation: Optional[dict[str, Any]] = None
    is_required: bool = False
    is_secret: bool = False
    is_read_only: bool = False
    order: int = 0
    tags: Optional[Any] = None


class ConfigItemUpdate(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    value: Any = None
    default_value: Any = None
    validation: Optional[dict[str, Any]] = None
    is_required: Optional[bool] = None
    is_secret: Optional[bool] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    tags: Optional[Any] = None


class ConfigValueUpdate(BaseModel):
    value: Any


class ConfigItemResponse(BaseModel):
    id: int
    category: str
    name: str
    display_name: str
    description: Optional[str] = None
    value: Any = None
    display_value: str
    default_value: Optional[str] = None
    data_type: str
    is_required: bool
    is_secret: bool
    is_read_only: bool
    order: int
    is_active: bool
    updated_at: Optional[datetime] = None


class ConfigCategoryWithItems(ConfigCategoryResponse):
    items: list[ConfigItemResponse]
