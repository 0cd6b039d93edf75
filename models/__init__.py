from .user import User, Role
from .domain import Domain
from .sip_profile import SipProfile, ProfileType
from .gateway import Gateway
from .extension import Extension
from .cdr import CallDetailRecord
from .network_config import GlobalNetworkConfig, NetworkConfigStatus
from .config_item import ConfigCategory, ConfigItem
from .dialplan import Dialplan

__all__ = (
    "User",
    "Role",
    "Domain",
    "SipProfile",
    "ProfileType",
    "Gateway",
    "Extension",
    "CallDetailRecord",
    "GlobalNetworkConfig",
    "NetworkConfigStatus",
    "ConfigCategory",
    "ConfigItem",
    "Dialplan",
)
