from typing import Optional
from pydantic import BaseModel

from models.user import Role


class UserLogin(BaseModel):
    login: str
    password: str


class LDAPLoginRequest(BaseModel):
    username: str
    password: str


class UserRegister(BaseModel):
    login: str
    password: str
    name: str
    email: Optional[str] = None
    role: Optional[Role] = None


class Token(BaseModel):
    access_token: str
    token_type: str
    refresh_token: str


class TokenRefresh(BaseModel):
    refresh_token: str
