import enum
from datetime import datetime
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from database import Base


class ProfileType(enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    CUSTOM = "custom"


class SipProfile(Base):
    __tablename__ = "freeswitch_sip_profiles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    type = Column(Enum(ProfileType), nullable=False, default=ProfileType.CUSTOM, index=True)
    domain_id = Column(Integer, ForeignKey("freeswitch_domains.id"), nullable=True, index=True)
    bind_ip = Column(String(45), nullable=True)
    bind_port = Column(Integer, nullable=False, default=5060)
    tls_port = Column(Integer, nullable=True)
    rtp_ip = Column(String(45), nullable=True)
    ext_rtp_ip = Column(String(45), nullable=True)
    ext_sip_ip = Column(String(45), nullable=True)
    sip_port = Column(Integer, nullable=True)
    settings = Column(JSON, default=dict)
    advanced_settings = Column(JSON, default=dict)
    security_settings = Column(JSON, default=dict)
    codec_settings = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True, index=True)
    is_default = Column(Boolean, default=False)
    order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    domain = relationship("Domain", back_populates="sip_profiles")
    gateways = relationship("Gateway", back_populates="profile")
    extensions = relationship("Extension", back_populates="profile")

    @property
    def default_context(self) -> str:
        return "default" if self.type == ProfileType.INTERNAL else "public"
