import pytest

from models.domain import Domain
from models.extension import Extension, validate_extension

URL = "/api/v1/freeswitch/extensions"


@pytest.fixture
def domain(db):
    domain = Domain(name="pbx.example.com", admin_email="admin@example.com", max_extensions=2)
    db.add(domain)
    db.commit()
    db.refresh(domain)
    return domain


def create_extension(client, headers, number="1001", **extra):
    payload = {"extension_number": number, "password": "pa55", **extra}
    return client.post(URL, json=payload, headers=headers)


def test_validate_extension_messages():
    errors = validate_extension(
        {
            "extension_number": "12",
            "password": "abc",
            "voicemail_settings": {"enabled": True, "email_address": "nope"},
        }
    )
    assert errors == [
        "Extension number must be 3-10 digits",
        "Password must be at least 4 characters",
        "Invalid email address for voicemail",
    ]
    assert validate_extension({"extension_number": "1001", "password": "1234"}) == []


def test_create_extension_hides_password(client, admin_headers, domain):
    response = create_extension(client, admin_headers, domain_id=domain.id)

    assert response.status_code == 201
    body = response.json()
    assert "password" not in body
    assert body["dial_string"] == (
        "{^^:sip_invite_domain=pbx.example.com:presence_id=1001@pbx.example.com}"
        "user/1001@pbx.example.com"
    )


def test_dial_string_override():
    extension = Extension(
        extension_number="1001", dial_settings={"dial_string": "sofia/internal/1001%"}
    )
    assert extension.dial_string == "sofia/internal/1001%"


def test_invalid_extension(client, admin_headers):
    response = create_extension(client, admin_headers, number="12ab", password="x")

    assert response.status_code == 400
    assert len(response.json()["detail"]) == 2


def test_duplicate_number_is_scoped_to_domain(client, db, admin_headers, domain):
    other = Domain(name="other.example.com", admin_email="admin@example.com")
    db.add(other)
    db.commit()

    assert create_extension(client, admin_headers, domain_id=domain.id).status_code == 201
    assert create_extension(client, admin_headers, domain_id=domain.id).status_code == 409
    assert create_extension(client, admin_headers, domain_id=other.id).status_code == 201


def test_domain_extension_limit(client, admin_headers, domain):
    create_extension(client, admin_headers, "1001", domain_id=domain.id)
    create_extension(client, admin_headers, "1002", domain_id=domain.id)

    response = create_extension(client, admin_headers, "1003", domain_id=domain.id)
    assert response.status_code == 409
    assert "limit" in response.json()["detail"]


def test_create_basic_extension(client, db, admin_headers, domain):
    response = client.post(
        f"{URL}/basic",
        json={
            "extension_number": "2001",
            "display_name": "Reception",
            "password": "s3cret",
            "domain_id": domain.id,
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["effective_caller_id_name"] == "Reception"
    assert body["effective_caller_id_number"] == "2001"
    assert body["directory_settings"] == {
        "user_context": "default",
        "call_timeout": 30,
        "vm_enabled": True,
    }
    assert body["voicemail_settings"]["password"] == "2001"


def test_update_extension(client, admin_headers, domain):
    extension = create_extension(client, admin_headers, domain_id=domain.id).json()

    response = client.put(
        f"{URL}/{extension['id']}",
        json={"display_name": "Desk", "dial_settings": {"call_forward_all": "2002"}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["display_name"] == "Desk"

    response = client.put(
        f"{URL}/{extension['id']}", json={"password": "1"}, headers=admin_headers
    )
    assert response.status_code == 400


def test_stats_and_lookups(client, admin_headers, domain):
    create_extension(client, admin_headers, "1001", domain_id=domain.id)
    create_extension(
        client,
        admin_headers,
        "1002",
        domain_id=domain.id,
        voicemail_settings={"enabled": False},
        dial_settings={"call_forward_busy": "1001"},
    )
    create_extension(client, admin_headers, "3001", is_active=False)

    stats = client.get(f"{URL}/stats", headers=admin_headers).json()
    assert stats == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "with_voicemail": 2,
        "with_call_forwarding": 1,
        "by_domain": {"pbx.example.com": 2, "unassigned": 1},
    }

    by_domain = client.get(f"{URL}/by-domain/{domain.id}", headers=admin_headers).json()
    assert [e["extension_number"] for e in by_domain] == ["1001", "1002"]

    found = client.get(
        f"{URL}/by-number/1002", params={"domain_id": domain.id}, headers=admin_headers
    )
    assert found.json()["extension_number"] == "1002"
    assert client.get(f"{URL}/by-number/9999", headers=admin_headers).status_code == 404


def test_list_search(client, admin_headers):
    create_extension(client, admin_headers, "1001", display_name="Alice")
    create_extension(client, admin_headers, "1002", display_name="Bob")

    body = client.get(URL, params={"search": "bob"}, headers=admin_headers).json()
    assert [e["extension_number"] for e in body["data"]] == ["1002"]


def test_delete_extension(client, admin_headers):
    extension = create_extension(client, admin_headers).json()

    assert client.delete(f"{URL}/{extension['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{URL}/{extension['id']}", headers=admin_headers).status_code == 404
