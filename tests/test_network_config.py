import httpx

from esl import EslError
from models.network_config import GlobalNetworkConfig
from routes.freeswitch import network_config as network_config_routes

URL = "/api/v1/freeswitch/network-config"


def test_model_validation_rules():
    config = GlobalNetworkConfig(
        external_ip="300.1.1.1",
        bind_server_ip="auto",
        external_rtp_ip=None,
        sip_port=16400,
        tls_port=16400,
        rtp_start_port=16384,
        rtp_end_port=16450,
        stun_enabled=True,
        stun_server="stun.example.org",
        transport_protocols=["udp", "sctp"],
        enable_tls=True,
    )

    errors, warnings = config.validate()

    assert errors == [
        "SIP and TLS ports cannot be the same",
        "SIP port 16400 conflicts with the RTP port range",
        "TLS port 16400 conflicts with the RTP port range",
        "Invalid external IP address format",
        "Unsupported transport protocols: sctp",
    ]
    assert warnings == [
        "RTP port range is less than 100 ports, may cause issues with concurrent calls",
        "STUN server should start with 'stun:'",
        "TLS is enabled but 'tls' is not in transport protocols",
    ]


def test_get_creates_factory_defaults(client, viewer_headers, db):
    body = client.get(URL, headers=viewer_headers).json()

    assert body["config_name"] == "default"
    assert body["external_ip"] == "auto"
    assert body["sip_port"] == 5060
    assert body["tls_port"] == 5061
    assert (body["rtp_start_port"], body["rtp_end_port"]) == (16384, 16484)
    assert body["stun_server"] == "stun:stun.freeswitch.org"
    assert body["global_codec_prefs"] == "OPUS,G722,PCMU,PCMA"
    assert body["transport_protocols"] == ["udp", "tcp"]
    assert body["status"] == "active"

    client.get(URL, headers=viewer_headers)
    assert db.query(GlobalNetworkConfig).count() == 1


def test_update_marks_pending(client, admin_headers, fake_esl):
    response = client.put(
        URL, json={"external_ip": "203.0.113.10", "rtp_end_port": 20000}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["external_ip"] == "203.0.113.10"
    assert body["status"] == "pending"
    assert body["rtp_end_port"] == 20000
    assert fake_esl.commands == []


def test_update_rejects_invalid_values(client, admin_headers):
    response = client.put(
        URL, json={"rtp_start_port": 30000, "rtp_end_port": 20000}, headers=admin_headers
    )

    assert response.status_code == 400
    assert "RTP start port must be less than end port" in response.json()["detail"]["errors"]
    assert client.get(URL, headers=admin_headers).json()["rtp_start_port"] == 16384


def test_update_auto_applies(client, admin_headers, fake_esl):
    body = client.put(URL, json={"auto_apply": True}, headers=admin_headers).json()

    assert fake_esl.commands == ["reloadxml"]
    assert body["status"] == "active"
    assert body["last_applied_by"] == "admin"


def test_validate_does_not_persist(client, admin_headers):
    response = client.post(
        f"{URL}/validate", json={"rtp_end_port": 16400, "sip_port": 5061}, headers=admin_headers
    )

    body = response.json()
    assert body["is_valid"] is False
    assert body["errors"] == ["SIP and TLS ports cannot be the same"]
    assert body["warnings"] == [
        "RTP port range is less than 100 ports, may cause issues with concurrent calls"
    ]
    assert client.get(URL, headers=admin_headers).json()["sip_port"] == 5060


def test_apply_success(client, admin_headers, fake_esl):
    client.put(URL, json={"domain": "pbx.example.com"}, headers=admin_headers)

    result = client.post(f"{URL}/apply", headers=admin_headers).json()

    assert result["success"] is True
    assert result["applied_at"]
    assert fake_esl.commands == ["reloadxml"]

    status = client.get(f"{URL}/status", headers=admin_headers).json()
    assert status["status"] == "active"
    assert status["last_applied_by"] == "admin"
    assert status["is_valid"] is True


def test_apply_failure_marks_error(client, admin_headers, fake_esl):
    fake_esl.responses["reloadxml"] = EslError("reload failed")

    result = client.post(f"{URL}/apply", headers=admin_headers).json()

    assert result["success"] is False
    assert result["errors"] == ["reload failed"]
    assert client.get(f"{URL}/status", headers=admin_headers).json()["status"] == "error"


def test_apply_when_freeswitch_down(client, admin_headers, fake_esl):
    fake_esl.connected = False

    result = client.post(f"{URL}/apply", headers=admin_headers).json()
    assert result["success"] is False


def test_reset_requires_superadmin(client, admin_headers, superadmin_headers):
    client.put(URL, json={"sip_port": 5070}, headers=admin_headers)

    assert client.post(f"{URL}/reset-to-default", headers=admin_headers).status_code == 403

    body = client.post(f"{URL}/reset-to-default", headers=superadmin_headers).json()
    assert body["sip_port"] == 5060


def test_detect_ip_via_http(client, admin_headers, monkeypatch):
    monkeypatch.setattr(network_config_routes, "detect_public_ip", lambda: "198.51.100.7")

    result = client.post(f"{URL}/detect-ip", headers=admin_headers).json()
    assert result == {
        "detected_ip": "198.51.100.7",
        "method": "http",
        "success": True,
        "error": None,
    }


def test_detect_ip_falls_back_to_manual(client, admin_headers, monkeypatch):
    def unreachable():
        raise httpx.ConnectError("network is unreachable")

    monkeypatch.setattr(network_config_routes, "detect_public_ip", unreachable)

    result = client.post(f"{URL}/detect-ip", headers=admin_headers).json()
    assert result["method"] == "manual"
    assert result["success"] is False
    assert result["detected_ip"] is None
