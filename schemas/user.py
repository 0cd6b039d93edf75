from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from models.user import Role
from schemas.common import Pagination


class UserResponse(BaseModel):
    id: int
    login: str
    name: str
    email: Optional[str] = None
    role: Role
    auth_method: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: Role


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class PasswordReset(BaseModel):
    new_password: str


class UserListResponse(BaseModel):
    data: list[UserResponse]
    pagination: Pagination


class UserStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: dict[str, int]
    by_auth_method: dict[str, int]
