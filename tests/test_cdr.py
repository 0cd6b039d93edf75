from datetime import datetime, timedelta

import pytest

from models.cdr import CallDetailRecord

URL = "/api/v1/cdr"
START = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def calls(db):
    records = [
        CallDetailRecord(
            call_uuid="call-1",
            caller_id_number="1001",
            caller_id_name="Alice",
            destination_number="1002",
            direction="internal",
            status="answered",
            domain_name="pbx.example.com",
            call_created_at=START,
            call_answered_at=START + timedelta(seconds=5),
            total_duration=150,
            billable_duration=145,
        ),
        CallDetailRecord(
            call_uuid="call-2",
            caller_id_number="1002",
            destination_number="5551234",
            direction="outbound",
            status="answered",
            domain_name="pbx.example.com",
            call_created_at=START + timedelta(hours=1),
            call_answered_at=START + timedelta(hours=1, seconds=3),
            total_duration=315,
            billable_duration=312,
        ),
        CallDetailRecord(
            call_uuid="call-3",
            caller_id_number="5559876",
            destination_number="1001",
            direction="inbound",
            status="missed",
            domain_name="other.example.com",
            call_created_at=START + timedelta(days=1),
            total_duration=20,
            billable_duration=0,
        ),
    ]
    db.add_all(records)
    db.commit()
    return records


def test_list_newest_first(client, viewer_headers, calls):
    body = client.get(URL, headers=viewer_headers).json()

    assert [c["call_uuid"] for c in body["data"]] == ["call-3", "call-2", "call-1"]
    assert body["pagination"] == {"page": 1, "limit": 20, "total": 3, "total_pages": 1}


def test_filters(client, viewer_headers, calls):
    def uuids(**params):
        body = client.get(URL, params=params, headers=viewer_headers).json()
        return [c["call_uuid"] for c in body["data"]]

    assert uuids(caller="100") == ["call-2", "call-1"]
    assert uuids(destination="555") == ["call-2"]
    assert uuids(direction="inbound") == ["call-3"]
    assert uuids(status="answered", domain_name="pbx.example.com") == ["call-2", "call-1"]
    assert uuids(start_date="2024-03-01T09:30:00", end_date="2024-03-01T23:59:59") == [
        "call-2"
    ]


def test_pagination(client, viewer_headers, calls):
    body = client.get(URL, params={"page": 2, "limit": 2}, headers=viewer_headers).json()

    assert [c["call_uuid"] for c in body["data"]] == ["call-1"]
    assert body["pagination"]["total_pages"] == 2


def test_stats(client, viewer_headers, calls):
    stats = client.get(f"{URL}/stats", headers=viewer_headers).json()

    assert stats["total_calls"] == 3
    assert stats["answered_calls"] == 2
    assert stats["missed_calls"] == 1
    assert stats["answer_rate"] == 66.67
    assert stats["total_duration"] == 485
    assert stats["total_billable_duration"] == 457
    assert stats["average_duration"] == 162


def test_stats_window(client, viewer_headers, calls):
    stats = client.get(
        f"{URL}/stats",
        params={"start_date": "2024-03-02T00:00:00"},
        headers=viewer_headers,
    ).json()

    assert stats["total_calls"] == 1
    assert stats["answer_rate"] == 0


def test_stats_empty(client, viewer_headers):
    stats = client.get(f"{URL}/stats", headers=viewer_headers).json()
    assert stats["total_calls"] == 0
    assert stats["average_duration"] == 0


def test_get_by_uuid(client, viewer_headers, calls):
    response = client.get(f"{URL}/call-2", headers=viewer_headers)
    assert response.json()["destination_number"] == "5551234"

    assert client.get(f"{URL}/missing", headers=viewer_headers).status_code == 404


def test_text_filters_ignore_case(client, db, viewer_headers, calls):
    db.add(
        CallDetailRecord(
            call_uuid="call-4",
            caller_id_number="sip:Bob",
            destination_number="IVR-Main",
            call_created_at=START + timedelta(days=2),
        )
    )
    db.commit()

    def uuids(**params):
        body = client.get(URL, params=params, headers=viewer_headers).json()
        return [c["call_uuid"] for c in body["data"]]

    assert uuids(caller="BOB") == ["call-4"]
    assert uuids(destination="ivr-main") == ["call-4"]
    assert uuids(caller="alice") == ["call-1"]
