import csv
import io

import yaml

from esl import EslError
from models.extension import Extension
from models.gateway import Gateway

URL = "/api/v1/freeswitch/sip-profiles"

STATUS_RUNNING = """Name               internal
Domain Name        N/A
Auto-NAT           false
DBName             sofia_reg_internal
Pres Hosts         10.0.0.5,10.0.0.5
Dialplan           XML
Context            public
BIND-URL           sip:mod_sofia@10.0.0.5:5060
HOLD-MUSIC         local_stream://moh
State              RUNNING (0)
Registrations:     7
"""


def create_profile(client, headers, **extra):
    payload = {"name": "internal", "type": "internal", **extra}
    return client.post(URL, json=payload, headers=headers)


def test_create_profile_defaults(client, admin_headers):
    response = create_profile(client, admin_headers)

    assert response.status_code == 201
    profile = response.json()
    assert profile["bind_port"] == 5060
    assert profile["type"] == "internal"
    assert profile["is_default"] is False


def test_duplicate_name_conflict(client, admin_headers):
    create_profile(client, admin_headers)
    response = create_profile(client, admin_headers)
    assert response.status_code == 409


def test_bind_address_conflict(client, admin_headers):
    create_profile(client, admin_headers, bind_ip="10.0.0.5", bind_port=5060)

    response = create_profile(
        client, admin_headers, name="external", bind_ip="10.0.0.5", bind_port=5060
    )
    assert response.status_code == 409

    response = create_profile(
        client, admin_headers, name="external", bind_ip="10.0.0.5", bind_port=5080
    )
    assert response.status_code == 201


def test_update_into_bind_conflict(client, admin_headers):
    create_profile(client, admin_headers, bind_ip="10.0.0.5", bind_port=5060)
    other = create_profile(
        client, admin_headers, name="external", bind_ip="10.0.0.5", bind_port=5080
    ).json()

    response = client.put(
        f"{URL}/{other['id']}", json={"bind_port": 5060}, headers=admin_headers
    )
    assert response.status_code == 409


def test_single_default_profile(client, admin_headers):
    first = create_profile(client, admin_headers, is_default=True).json()
    second = create_profile(client, admin_headers, name="external", is_default=True).json()

    assert client.get(f"{URL}/{first['id']}", headers=admin_headers).json()["is_default"] is False
    assert client.get(f"{URL}/{second['id']}", headers=admin_headers).json()["is_default"] is True

    response = client.put(f"{URL}/{first['id']}/set-default", headers=admin_headers)
    assert response.json()["is_default"] is True
    assert client.get(f"{URL}/{second['id']}", headers=admin_headers).json()["is_default"] is False


def test_delete_blocked_by_gateway(client, db, admin_headers):
    profile = create_profile(client, admin_headers).json()
    db.add(Gateway(name="trunk", profile_id=profile["id"], gateway_host="sip.carrier.net"))
    db.commit()

    response = client.delete(f"{URL}/{profile['id']}", headers=admin_headers)
    assert response.status_code == 409


def test_delete_profile(client, admin_headers):
    profile = create_profile(client, admin_headers).json()

    assert client.delete(f"{URL}/{profile['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{URL}/{profile['id']}", headers=admin_headers).status_code == 404


def test_list_filters_and_sorting(client, viewer_headers, admin_headers):
    create_profile(client, admin_headers, order=2)
    create_profile(client, admin_headers, name="external", type="external", order=1)
    create_profile(client, admin_headers, name="lab", type="custom", order=3, is_active=False)

    body = client.get(URL, headers=viewer_headers).json()
    assert [p["name"] for p in body["data"]] == ["external", "internal", "lab"]
    assert body["pagination"]["total"] == 3

    body = client.get(
        URL, params={"sort_by": "name", "sort_order": "desc"}, headers=viewer_headers
    ).json()
    assert [p["name"] for p in body["data"]] == ["lab", "internal", "external"]

    # неизвестное поле сортировки заменяется на order
    body = client.get(URL, params={"sort_by": "password"}, headers=viewer_headers).json()
    assert [p["name"] for p in body["data"]] == ["external", "internal", "lab"]

    body = client.get(
        URL, params={"type": "external", "is_active": True}, headers=viewer_headers
    ).json()
    assert [p["name"] for p in body["data"]] == ["external"]


def test_stats(client, admin_headers):
    create_profile(client, admin_headers)
    create_profile(client, admin_headers, name="external", type="external", is_active=False)

    stats = client.get(f"{URL}/stats", headers=admin_headers).json()
    assert stats == {
        "total": 2,
        "by_type": {"internal": 1, "external": 1, "custom": 0},
        "active": 1,
        "inactive": 1,
    }


def test_export_formats(client, admin_headers):
    create_profile(client, admin_headers, bind_ip="10.0.0.5")

    response = client.get(f"{URL}/export", params={"format": "json"}, headers=admin_headers)
    assert response.json()[0]["name"] == "internal"

    response = client.get(f"{URL}/export", params={"format": "yaml"}, headers=admin_headers)
    assert yaml.safe_load(response.text)[0]["bind_ip"] == "10.0.0.5"

    response = client.get(f"{URL}/export", params={"format": "csv"}, headers=admin_headers)
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert rows[0]["type"] == "internal"

    response = client.get(f"{URL}/export", params={"format": "xml"}, headers=admin_headers)
    assert response.status_code == 400


def test_reload_profile_sends_restart(client, admin_headers, fake_esl):
    profile = create_profile(client, admin_headers).json()

    response = client.post(f"{URL}/{profile['id']}/reload", headers=admin_headers)

    assert response.status_code == 200
    assert fake_esl.commands == ["sofia profile internal restart"]


def test_profile_status(client, admin_headers, fake_esl):
    profile = create_profile(client, admin_headers).json()
    fake_esl.responses["sofia status profile internal"] = STATUS_RUNNING

    response = client.post(f"{URL}/{profile['id']}/test", headers=admin_headers)

    assert response.json() == {
        "success": True,
        "profile": "internal",
        "status": "running",
        "registrations": 7,
    }


def test_reload_when_freeswitch_is_down(client, admin_headers, fake_esl):
    profile = create_profile(client, admin_headers).json()
    fake_esl.connected = False

    response = client.post(f"{URL}/{profile['id']}/reload", headers=admin_headers)
    assert response.status_code == 503


def test_reload_command_failure(client, admin_headers, fake_esl):
    profile = create_profile(client, admin_headers).json()
    fake_esl.responses["sofia profile internal restart"] = EslError("Invalid Profile!")

    response = client.post(f"{URL}/{profile['id']}/reload", headers=admin_headers)
    assert response.status_code == 502


def test_delete_blocked_by_extension(client, db, admin_headers):
    profile = create_profile(client, admin_headers).json()
    db.add(Extension(extension_number="1001", password="1234", profile_id=profile["id"]))
    db.commit()

    response = client.delete(f"{URL}/{profile['id']}", headers=admin_headers)
    assert response.status_code == 409


def test_update_ignores_explicit_nulls(client, admin_headers):
    profile = create_profile(client, admin_headers, bind_port=5080).json()

    response = client.put(
        f"{URL}/{profile['id']}",
        json={"bind_port": None, "type": None, "description": "LAN phones"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["bind_port"] == 5080
    assert body["type"] == "internal"
    assert body["description"] == "LAN phones"
