import enum
import re
from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, Integer, String, Text

from database import Base


IPV4_RE = re.compile(
    r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)
ALLOWED_TRANSPORTS = ("udp", "tcp", "tls", "ws", "wss")


class NetworkConfigStatus(enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    ERROR = "error"
    DISABLED = "disabled"


# Заводские значения глобальной сетевой конфигурации
FACTORY_DEFAULTS = {
    "external_ip": "auto",
    "bind_server_ip": "auto",
    "domain": "localhost",
    "sip_port": 5060,
    "external_sip_port": None,
    "tls_port": 5061,
    "external_tls_port": None,
    "rtp_start_port": 16384,
    "rtp_end_port": 16484,
    "external_rtp_ip": None,
    "stun_server": "stun:stun.freeswitch.org",
    "stun_enabled": True,
    "global_codec_prefs": "OPUS,G722,PCMU,PCMA",
    "outbound_codec_prefs": "OPUS,G722,PCMU,PCMA",
    "transport_protocols": ["udp", "tcp"],
    "enable_tls": False,
    "nat_detection": True,
    "auto_nat": True,
    "auto_apply": False,
    "config_metadata": {},
}


class GlobalNetworkConfig(Base):
    __tablename__ = "global_network_configs"

    id = Column(Integer, primary_key=True, index=True)
    config_name = Column(String(100), unique=True, nullable=False, default="default")
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    external_ip = Column(String(45), nullable=True)
    bind_server_ip = Column(String(45), default="auto")
    domain = Column(String(255), default="localhost")
    sip_port = Column(Integer, default=5060)
    external_sip_port = Column(Integer, nullable=True)
    tls_port = Column(Integer, default=5061)
    external_tls_port = Column(Integer, nullable=True)
    rtp_start_port = Column(Integer, default=16384)
    rtp_end_port = Column(Integer, default=16484)
    external_rtp_ip = Column(String(45), nullable=True)
    stun_server = Column(String(255), default="stun:stun.freeswitch.org")
    stun_enabled = Column(Boolean, default=True)
    global_codec_prefs = Column(String(500), default="OPUS,G722,PCMU,PCMA")
    outbound_codec_prefs = Column(String(500), default="OPUS,G722,PCMU,PCMA")
    transport_protocols = Column(JSON, default=lambda: ["udp", "tcp"])
    enable_tls = Column(Boolean, default=False)
    nat_detection = Column(Boolean, default=True)
    auto_nat = Column(Boolean, default=True)
    status = Column(Enum(NetworkConfigStatus), default=NetworkConfigStatus.ACTIVE, index=True)
    is_active = Column(Boolean, default=True, index=True)
    is_default = Column(Boolean, default=False, index=True)
    auto_apply = Column(Boolean, default=False)
    # атрибут metadata занят у declarative Base
    config_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)
    last_applied_at = Column(DateTime, nullable=True)
    last_applied_by = Column(String(100), nullable=True)

    @property
    def rtp_port_range(self) -> str:
        return f"{self.rtp_start_port}-{self.rtp_end_port}"

    def validate_port_ranges(self) -> list[str]:
        errors = []

        if self.rtp_start_port >= self.rtp_end_port:
            errors.append("RTP start port must be less than end port")
        if self.rtp_start_port < 1024 or self.rtp_end_port > 65535:
            errors.append("RTP ports must be between 1024 and 65535")
        if not 1 <= self.sip_port <= 65535:
            errors.append("SIP port must be between 1 and 65535")
        if not 1 <= self.tls_port <= 65535:
            errors.append("TLS port must be between 1 and 65535")
        if self.sip_port == self.tls_port:
            errors.append("SIP and TLS ports cannot be the same")

        for label, port in (("SIP", self.sip_port), ("TLS", self.tls_port)):
            if self.rtp_start_port <= port <= self.rtp_end_port:
                errors.append(f"{label} port {port} conflicts with the RTP port range")

        return errors

    def validate_ip_addresses(self) -> list[str]:
        errors = []

        for label, value in (
            ("external IP", self.external_ip),
            ("bind server IP", self.bind_server_ip),
            ("external RTP IP", self.external_rtp_ip),
        ):
            if value and value != "auto" and not IPV4_RE.match(value):
                errors.append(f"Invalid {label} address format")

        return errors

    def validate_transports(self) -> list[str]:
        unknown = [t for t in self.transport_protocols or [] if t not in ALLOWED_TRANSPORTS]
        if unknown:
            return [f"Unsupported transport protocols: {', '.join(unknown)}"]
        return []

    def validate(self) -> tuple[list[str], list[str]]:
        """Возвращает (errors, warnings)"""
        errors = self.validate_port_ranges()
        errors += self.validate_ip_addresses()
        errors += self.validate_transports()

        warnings = []
        if self.rtp_end_port - self.rtp_start_port < 100:
            warnings.append(
                "RTP port range is less than 100 ports, may cause issues with concurrent calls"
            )
        if self.stun_enabled and self.stun_server and not self.stun_server.startswith("stun:"):
            warnings.append("STUN server should start with 'stun:'")
        if self.enable_tls and "tls" not in (self.transport_protocols or []):
            warnings.append("TLS is enabled but 'tls' is not in transport protocols")

        return errors, warnings
