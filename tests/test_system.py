import json

from esl import EslError

STATUS_OUTPUT = """UP 0 years, 2 days, 3 hours, 4 minutes, 5 seconds, 6 milliseconds, 7 microseconds
FreeSWITCH (Version 1.10.11 -release 64bit) is ready
42 session(s) since startup
3 session(s) - peak 17, last 5min 4
0 session(s) per Sec out of max 30, peak 6, last 5min 1
1000 session(s) max
min idle cpu 0.00/97.33
"""


def test_health_is_public(client, fake_esl):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["freeswitch"] == "connected"
    assert fake_esl.commands == ["status"]


def test_health_without_freeswitch(client, fake_esl):
    fake_esl.connected = False

    body = client.get("/api/v1/health").json()

    assert body["status"] == "unhealthy"
    assert body["database"] == "connected"
    assert body["freeswitch"] == "disconnected"


def test_system_status(client, viewer_headers, fake_esl):
    fake_esl.responses["status"] = STATUS_OUTPUT

    status = client.get("/api/v1/system/status", headers=viewer_headers).json()

    assert status == {
        "uptime": "0y 2d 3h 4m 5s",
        "session_count": 42,
        "max_sessions": 17,
        "sessions_per_second": 0,
        "version": "1.10.11 -release 64bit",
        "ready": True,
    }


def test_system_status_without_freeswitch(client, viewer_headers, fake_esl):
    fake_esl.connected = False

    response = client.get("/api/v1/system/status", headers=viewer_headers)
    assert response.status_code == 503


def test_reloadxml(client, admin_headers, viewer_headers, fake_esl):
    assert client.post("/api/v1/system/reloadxml", headers=viewer_headers).status_code == 403

    fake_esl.responses["reloadxml"] = "+OK [Success]"
    body = client.post("/api/v1/system/reloadxml", headers=admin_headers).json()

    assert body["success"] is True
    assert body["details"] == {"result": "+OK [Success]"}
    assert fake_esl.commands == ["reloadxml"]


def test_reloadxml_failure(client, admin_headers, fake_esl):
    fake_esl.responses["reloadxml"] = EslError("Permission denied")

    response = client.post("/api/v1/system/reloadxml", headers=admin_headers)

    assert response.status_code == 502
    assert "Permission denied" in response.json()["detail"]


def test_active_calls(client, viewer_headers, fake_esl):
    rows = [
        {"uuid": "a-leg", "cid_num": "1001", "dest": "1002", "callstate": "ACTIVE"},
        {"uuid": "b-leg", "cid_num": "1003", "dest": "5551234", "callstate": "RINGING"},
    ]
    fake_esl.responses["show calls as json"] = json.dumps({"row_count": 2, "rows": rows})

    body = client.get("/api/v1/calls/active", headers=viewer_headers).json()

    assert body == {"total": 2, "calls": rows}


def test_no_active_calls(client, viewer_headers, fake_esl):
    fake_esl.responses["show calls as json"] = json.dumps({"row_count": 0})

    body = client.get("/api/v1/calls/active", headers=viewer_headers).json()
    assert body == {"total": 0, "calls": []}


def test_hangup(client, admin_headers, fake_esl):
    response = client.post("/api/v1/calls/a-leg/hangup", headers=admin_headers)

    assert response.status_code == 200
    assert fake_esl.commands == ["uuid_kill a-leg NORMAL_CLEARING"]

    client.post(
        "/api/v1/calls/b-leg/hangup", params={"cause": "CALL_REJECTED"}, headers=admin_headers
    )
    assert fake_esl.commands[-1] == "uuid_kill b-leg CALL_REJECTED"


def test_hangup_unknown_call(client, admin_headers, fake_esl):
    fake_esl.responses["uuid_kill missing NORMAL_CLEARING"] = EslError("No such channel!")

    response = client.post("/api/v1/calls/missing/hangup", headers=admin_headers)
    assert response.status_code == 502
