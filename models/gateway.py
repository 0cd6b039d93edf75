from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base


class Gateway(Base):
    __tablename__ = "freeswitch_gateways"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    profile_id = Column(Integer, ForeignKey("freeswitch_sip_profiles.id"), nullable=False, index=True)
    domain_id = Column(Integer, ForeignKey("freeswitch_domains.id"), nullable=True, index=True)
    gateway_host = Column(String(255), nullable=False)
    gateway_port = Column(Integer, default=5060)
    username = Column(String(100), nullable=True)
    password = Column(String(255), nullable=True)
    realm = Column(String(255), nullable=True)
    from_user = Column(String(100), nullable=True)
    from_domain = Column(String(255), nullable=True)
    proxy = Column(String(255), nullable=True)
    register = Column(Boolean, default=True)
    register_transport = Column(String(20), default="udp")
    expire_seconds = Column(Integer, default=3600)
    retry_seconds = Column(Integer, default=30)
    caller_id_in_from = Column(Boolean, default=False)
    extension = Column(String(50), nullable=True)
    gateway_config = Column(JSON, default=dict)
    auth_settings = Column(JSON, default=dict)
    routing_settings = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True, index=True)
    order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    profile = relationship("SipProfile", back_populates="gateways")

    @property
    def connection_string(self) -> str:
        auth = f"{self.username}:{self.password}@" if self.username and self.password else ""
        port = f":{self.gateway_port}" if self.gateway_port and self.gateway_port != 5060 else ""
        return f"sip:{auth}{self.gateway_host}{port}"

    @property
    def is_registered(self) -> bool:
        # регистрация возможна только с логином и паролем
        return bool(self.register and self.username and self.password)

    def dial_string(self, number: str) -> str:
        routing = self.routing_settings or {}
        prefix = routing.get("prefix") or ""
        suffix = routing.get("suffix") or ""
        return f"sofia/gateway/{self.name}/{prefix}{number}{suffix}"
