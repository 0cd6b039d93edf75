import json
import re
from typing import Any, Optional

from greenswitch import InboundESL
from greenswitch.esl import NotConnectedError
from loguru import logger

from config import config


class EslError(Exception):
    """FreeSWITCH выполнил команду с ошибкой (-ERR ...)"""


class EslConnectionError(EslError):
    """FreeSWITCH недоступен по Event Socket"""


UPTIME_RE = re.compile(
    r"UP (\d+) years?, (\d+) days?, (\d+) hours?, (\d+) minutes?, (\d+) seconds?"
)
SESSIONS_RE = re.compile(r"(\d+) session\(s\) since startup")
PEAK_RE = re.compile(r"(\d+) session\(s\) - peak (\d+)")
SPS_RE = re.compile(r"(\d+) session\(s\) per Sec")
VERSION_RE = re.compile(r"FreeSWITCH \(Version ([^)]+)\)")
REGISTRATIONS_RE = re.compile(r"Registrations:\s*(\d+)")


def parse_status(output: str) -> dict[str, Any]:
    status = {
        "uptime": "Unknown",
        "session_count": 0,
        "max_sessions": 0,
        "sessions_per_second": 0,
        "version": "Unknown",
        "ready": True,
    }

    for line in output.splitlines():
        uptime = UPTIME_RE.search(line)
        if uptime:
            y, d, h, m, s = uptime.groups()
            status["uptime"] = f"{y}y {d}d {h}h {m}m {s}s"

        sessions = SESSIONS_RE.search(line)
        if sessions:
            status["session_count"] = int(sessions.group(1))

        peak = PEAK_RE.search(line)
        if peak:
            status["max_sessions"] = int(peak.group(2))

        sps = SPS_RE.search(line)
        if sps:
            status["sessions_per_second"] = int(sps.group(1))

        version = VERSION_RE.search(line)
        if version:
            status["version"] = version.group(1)

    return status


def parse_profile_status(output: str) -> dict[str, Any]:
    registrations = 0
    status = "unknown"

    for line in output.splitlines():
        match = REGISTRATIONS_RE.search(line)
        if match:
            registrations = int(match.group(1))
        if "RUNNING" in line:
            status = "running"
        elif "STOPPED" in line:
            status = "stopped"

    return {"status": status, "registrations": registrations}


def parse_gateway_status(output: str) -> dict[str, str]:
    # UNREGED содержит подстроку REGED, поэтому проверяется первым
    if "UNREGED" in output:
        return {"status": "unregistered", "state": "down"}
    if "REGED" in output:
        return {"status": "registered", "state": "up"}
    if "TRYING" in output:
        return {"status": "trying", "state": "connecting"}
    return {"status": "unknown", "state": "unknown"}


def parse_calls(output: str) -> list[dict[str, Any]]:
    """Разбор вывода `show calls as json`"""
    if not output:
        return []
    try:
        data = json.loads(output)
    except ValueError as e:
        raise EslError(f"Unexpected response to show calls: {e}") from e
    return data.get("rows") or []


class EslClient:
    """Короткоживущие inbound-подключения к FreeSWITCH: одно подключение на команду"""

    def __init__(self, host: str, port: int, password: str, timeout: int = 5):
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout

    def api(self, command: str) -> str:
        logger.debug(f"ESL api {command}")
        esl = InboundESL(
            host=self.host, port=self.port, password=self.password, timeout=self.timeout
        )
        try:
            esl.connect()
        except (OSError, ValueError, NotConnectedError) as e:
            logger.warning(f"ESL connection to {self.host}:{self.port} failed: {e}")
            raise EslConnectionError(
                f"Cannot reach FreeSWITCH at {self.host}:{self.port}: {e}"
            ) from e

        try:
            result = esl.send(f"api {command}")
        except NotConnectedError as e:
            raise EslConnectionError(f"FreeSWITCH closed the connection: {e}") from e
        finally:
            esl.stop()

        data = getattr(result, "data", None) or ""
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        data = data.strip()

        if data.startswith("-ERR"):
            logger.error(f"ESL command '{command}' failed: {data}")
            raise EslError(data[4:].strip() or data)
        return data

    def is_connected(self) -> bool:
        try:
            self.api("status")
        except EslError:
            return False
        return True

    def status(self) -> dict[str, Any]:
        return parse_status(self.api("status"))

    def reloadxml(self) -> str:
        return self.api("reloadxml")

    def restart_profile(self, name: str) -> str:
        return self.api(f"sofia profile {name} restart")

    def profile_status(self, name: str) -> dict[str, Any]:
        return parse_profile_status(self.api(f"sofia status profile {name}"))

    def gateway_status(self, name: str) -> dict[str, str]:
        return parse_gateway_status(self.api(f"sofia status gateway {name}"))

    def active_calls(self) -> list[dict[str, Any]]:
        return parse_calls(self.api("show calls as json"))

    def hangup(self, uuid: str, cause: Optional[str] = None) -> str:
        command = f"uuid_kill {uuid}"
        if cause:
            command += f" {cause}"
        return self.api(command)


def get_esl() -> EslClient:
    return EslClient(
        config.ESL_HOST, config.ESL_PORT, config.ESL_PASSWORD, config.ESL_TIMEOUT
    )
