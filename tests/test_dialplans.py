from models.dialplan import validate_dialplan
from models.domain import Domain

URL = "/api/v1/freeswitch/dialplans"

BRIDGE = {"application": "bridge", "data": "user/${destination_number}"}


def create_dialplan(client, headers, **extra):
    payload = {
        "name": "local_extensions",
        "condition_expression": "^(1\\d{3})$",
        "actions": [BRIDGE],
        **extra,
    }
    return client.post(URL, json=payload, headers=headers)


def test_validate_dialplan():
    assert validate_dialplan({"name": "a", "context": "default", "actions": [BRIDGE]}) == []

    errors = validate_dialplan(
        {
            "name": "",
            "context": "default",
            "condition_expression": "^(1",
            "actions": [{"data": "x"}],
        }
    )
    assert errors == [
        "Name is required",
        "Invalid regular expression in condition",
        "Action 1: Application is required",
    ]
    assert "At least one action is required" in validate_dialplan(
        {"name": "a", "context": "default", "actions": []}
    )


def test_create_and_get_dialplan(client, admin_headers):
    response = create_dialplan(client, admin_headers)

    assert response.status_code == 201
    dialplan = response.json()
    assert dialplan["context"] == "default"
    assert dialplan["condition_field"] == "destination_number"
    assert dialplan["actions"] == [BRIDGE]

    fetched = client.get(f"{URL}/{dialplan['id']}", headers=admin_headers).json()
    assert fetched["name"] == "local_extensions"
    assert client.get(f"{URL}/9999", headers=admin_headers).status_code == 404


def test_create_dialplan_errors(client, admin_headers, viewer_headers):
    assert create_dialplan(client, admin_headers, actions=[]).status_code == 400
    assert create_dialplan(client, admin_headers, domain_id=42).status_code == 404
    assert create_dialplan(client, viewer_headers).status_code == 403

    create_dialplan(client, admin_headers)
    response = create_dialplan(client, admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == (
        "Dialplan with name 'local_extensions' already exists in context 'default'"
    )

    assert create_dialplan(client, admin_headers, context="public").status_code == 201


def test_list_dialplans_filters(client, db, admin_headers):
    domain = Domain(name="pbx.example.com", admin_email="admin@example.com")
    db.add(domain)
    db.commit()
    create_dialplan(client, admin_headers, name="late", priority=20)
    create_dialplan(client, admin_headers, name="early", priority=5, domain_id=domain.id)
    create_dialplan(client, admin_headers, name="inbound", context="public", is_active=False)

    body = client.get(URL, params={"context": "default"}, headers=admin_headers).json()
    assert [d["name"] for d in body["data"]] == ["early", "late"]

    body = client.get(URL, params={"domain_id": domain.id}, headers=admin_headers).json()
    assert [d["name"] for d in body["data"]] == ["early"]

    body = client.get(URL, params={"is_active": False}, headers=admin_headers).json()
    assert [d["name"] for d in body["data"]] == ["inbound"]


def test_dialplan_stats(client, admin_headers):
    create_dialplan(client, admin_headers, name="a")
    create_dialplan(client, admin_headers, name="b", is_template=True)
    create_dialplan(client, admin_headers, name="c", context="public", is_active=False)

    stats = client.get(f"{URL}/stats", headers=admin_headers).json()

    assert stats == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "templates": 1,
        "by_context": {"default": 2, "public": 1},
    }


def test_by_context_returns_active_in_priority_order(client, admin_headers):
    create_dialplan(client, admin_headers, name="zeta", priority=1)
    create_dialplan(client, admin_headers, name="alpha", priority=1)
    create_dialplan(client, admin_headers, name="first", priority=0)
    create_dialplan(client, admin_headers, name="off", priority=0, is_active=False)

    body = client.get(f"{URL}/by-context/default", headers=admin_headers).json()

    assert [d["name"] for d in body] == ["first", "alpha", "zeta"]


def test_bulk_priority(client, admin_headers):
    first = create_dialplan(client, admin_headers, name="first").json()["id"]
    second = create_dialplan(client, admin_headers, name="second").json()["id"]

    response = client.put(
        f"{URL}/bulk-priority",
        json=[{"id": first, "priority": 10}, {"id": second, "priority": 1}],
        headers=admin_headers,
    )
    assert response.status_code == 200

    body = client.get(f"{URL}/by-context/default", headers=admin_headers).json()
    assert [d["name"] for d in body] == ["second", "first"]

    response = client.put(
        f"{URL}/bulk-priority", json=[{"id": 9999, "priority": 1}], headers=admin_headers
    )
    assert response.status_code == 404


def test_create_from_template(client, admin_headers):
    template_id = create_dialplan(
        client,
        admin_headers,
        name="outbound",
        is_template=True,
        variables={"hangup_after_bridge": "true"},
    ).json()["id"]

    response = client.post(
        f"{URL}/{template_id}/create-from-template",
        json={"context": "office"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    copy = response.json()
    assert copy["name"] == "outbound_copy"
    assert copy["context"] == "office"
    assert copy["is_template"] is False
    assert copy["variables"] == {"hangup_after_bridge": "true"}
    assert copy["actions"] == [BRIDGE]


def test_create_from_non_template(client, admin_headers):
    dialplan_id = create_dialplan(client, admin_headers).json()["id"]

    response = client.post(
        f"{URL}/{dialplan_id}/create-from-template", json={}, headers=admin_headers
    )

    assert response.status_code == 409


def test_update_dialplan(client, admin_headers):
    dialplan_id = create_dialplan(client, admin_headers).json()["id"]
    create_dialplan(client, admin_headers, name="other")

    response = client.put(
        f"{URL}/{dialplan_id}",
        json={"priority": 3, "display_name": None},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["priority"] == 3

    response = client.put(
        f"{URL}/{dialplan_id}", json={"condition_expression": "(("}, headers=admin_headers
    )
    assert response.status_code == 400

    response = client.put(f"{URL}/{dialplan_id}", json={"name": "other"}, headers=admin_headers)
    assert response.status_code == 409


def test_delete_dialplan(client, admin_headers):
    dialplan_id = create_dialplan(client, admin_headers).json()["id"]

    assert client.delete(f"{URL}/{dialplan_id}", headers=admin_headers).status_code == 200
    assert client.get(f"{URL}/{dialplan_id}", headers=admin_headers).status_code == 404
