import re
from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base


DOMAIN_NAME_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Domain(Base):
    __tablename__ = "freeswitch_domains"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    max_users = Column(Integer, default=100)
    max_extensions = Column(Integer, default=1000)
    max_concurrent_calls = Column(Integer, default=50)
    settings = Column(JSON, default=dict)
    billing_settings = Column(JSON, default=dict)
    admin_email = Column(String(255), nullable=False)
    admin_phone = Column(String(50), nullable=True)
    timezone = Column(String(50), default="UTC")
    language = Column(String(10), default="en")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    extensions = relationship("Extension", back_populates="domain")
    sip_profiles = relationship("SipProfile", back_populates="domain")

    def validate(self) -> list[str]:
        errors = []

        if not self.name:
            errors.append("Domain name is required")
        elif not DOMAIN_NAME_RE.match(self.name):
            errors.append("Invalid domain name format")

        if not self.admin_email:
            errors.append("Admin email is required")
        elif not EMAIL_RE.match(self.admin_email):
            errors.append("Invalid admin email format")

        if self.max_users is not None and self.max_users <= 0:
            errors.append("Max users must be greater than 0")
        if self.max_extensions is not None and self.max_extensions <= 0:
            errors.append("Max extensions must be greater than 0")
        if self.max_concurrent_calls is not None and self.max_concurrent_calls <= 0:
            errors.append("Max concurrent calls must be greater than 0")

        return errors

    def has_reached_extension_limit(self) -> bool:
        return len(self.extensions) >= self.max_extensions

    def usage(self) -> dict:
        current = len(self.extensions)
        return {
            "current": current,
            "max": self.max_extensions,
            "percentage": round(current / self.max_extensions * 100) if self.max_extensions else 0,
        }
