import re
from datetime import datetime
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base
from models.domain import EMAIL_RE


EXTENSION_NUMBER_RE = re.compile(r"^[0-9]{3,10}$")


def validate_extension(data: dict) -> list[str]:
    """Проверка данных внутреннего номера (до сохранения в базу)"""
    errors = []

    number = data.get("extension_number")
    if not number:
        errors.append("Extension number is required")
    elif not EXTENSION_NUMBER_RE.match(number):
        errors.append("Extension number must be 3-10 digits")

    password = data.get("password")
    if not password or len(password) < 4:
        errors.append("Password must be at least 4 characters")

    voicemail = data.get("voicemail_settings") or {}
    email = voicemail.get("email_address")
    if voicemail.get("enabled") and email and not EMAIL_RE.match(email):
        errors.append("Invalid email address for voicemail")

    return errors


class Extension(Base):
    __tablename__ = "freeswitch_extensions"

    id = Column(Integer, primary_key=True, index=True)
    extension_number = Column(String(50), nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    domain_id = Column(Integer, ForeignKey("freeswitch_domains.id"), nullable=True, index=True)
    profile_id = Column(Integer, ForeignKey("freeswitch_sip_profiles.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    password = Column(String(255), nullable=True)
    effective_caller_id_name = Column(String(100), nullable=True)
    effective_caller_id_number = Column(String(50), nullable=True)
    outbound_caller_id_name = Column(String(100), nullable=True)
    outbound_caller_id_number = Column(String(50), nullable=True)
    directory_settings = Column(JSON, default=dict)
    dial_settings = Column(JSON, default=dict)
    voicemail_settings = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    domain = relationship("Domain", back_populates="extensions")
    profile = relationship("SipProfile", back_populates="extensions")

    # Уникальный номер в рамках домена
    __table_args__ = (
        UniqueConstraint("extension_number", "domain_id", name="uix_extension_domain"),
    )

    @property
    def has_voicemail(self) -> bool:
        return (self.voicemail_settings or {}).get("enabled") is not False

    @property
    def has_call_forwarding(self) -> bool:
        dial = self.dial_settings or {}
        return bool(
            dial.get("call_forward_all")
            or dial.get("call_forward_busy")
            or dial.get("call_forward_no_answer")
        )

    @property
    def dial_string(self) -> str:
        dial = self.dial_settings or {}
        if dial.get("dial_string"):
            return dial["dial_string"]

        domain_name = self.domain.name if self.domain else "${domain_name}"
        presence_id = dial.get("presence_id") or f"{self.extension_number}@{domain_name}"
        return (
            f"{{^^:sip_invite_domain={domain_name}:presence_id={presence_id}}}"
            f"user/{self.extension_number}@{domain_name}"
        )


def basic_extension(
    extension_number: str, display_name: str, password: str, domain_id=None
) -> dict:
    return {
        "extension_number": extension_number,
        "display_name": display_name,
        "password": password,
        "domain_id": domain_id,
        "effective_caller_id_name": display_name,
        "effective_caller_id_number": extension_number,
        "directory_settings": {
            "user_context": "default",
            "call_timeout": 30,
            "vm_enabled": True,
        },
        "voicemail_settings": {
            "enabled": True,
            "password": extension_number,
            "attach_file": False,
            "delete_file": False,
        },
    }
