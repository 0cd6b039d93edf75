from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Enum

from database import Base

import enum


class Role(enum.Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    VIEWER = "viewer"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    login = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)  # пусто у LDAP-пользователей
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    auth_method = Column(String(20), nullable=False, default="local")
    is_active = Column(Boolean, default=True)

    role = Column(Enum(Role), nullable=False, default=Role.ADMIN)
    created_at = Column(DateTime, default=datetime.utcnow)
