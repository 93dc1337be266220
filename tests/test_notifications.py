"""Integration tests for notification endpoints."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from schoolhub.db.models import Notification
from schoolhub.services.notification_service import NotificationService

from tests.helpers import auth_headers, authenticate


def seed_notifications(db_session, recipient, count: int, **overrides) -> list[Notification]:
    service = NotificationService(db_session)
    records = []
    for index in range(count):
        records.extend(
            service.create_for_recipients(
                [recipient.id],
                title=overrides.get("title", f"Notice {index}"),
                message="Details inside",
            )
        )
    return records


def test_list_notifications_paginates_newest_first(client: TestClient, db_session, make_user) -> None:
    user = make_user()
    records = seed_notifications(db_session, user, 3)
    for offset, record in enumerate(records):
        record.created_at = datetime.now(timezone.utc) - timedelta(minutes=10 - offset)
    db_session.commit()

    response = client.get(
        "/api/v1/notifications/", params={"page": 1, "limit": 2}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    body = response.json()
    assert [item["title"] for item in body["data"]] == ["Notice 2", "Notice 1"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert body["unreadCount"] == 3
    assert "_id" in body["data"][0]


def test_list_only_returns_own_unexpired_notifications(
    client: TestClient, db_session, make_user
) -> None:
    user = make_user()
    other = make_user()
    seed_notifications(db_session, other, 2)
    (expired,) = seed_notifications(db_session, user, 1, title="Old")
    expired.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()
    seed_notifications(db_session, user, 1, title="Fresh")

    response = client.get("/api/v1/notifications/", headers=auth_headers(user))

    assert [item["title"] for item in response.json()["data"]] == ["Fresh"]


def test_unread_only_filter_and_count(client: TestClient, db_session, make_user) -> None:
    user = make_user()
    first, _ = seed_notifications(db_session, user, 2)
    first.read = True
    db_session.commit()

    listing = client.get(
        "/api/v1/notifications/", params={"unreadOnly": "true"}, headers=auth_headers(user)
    )
    count = client.get("/api/v1/notifications/unread-count", headers=auth_headers(user))

    assert listing.json()["pagination"]["total"] == 1
    assert count.json() == {"count": 1}


def test_mark_single_and_all_as_read(client: TestClient, db_session, make_user) -> None:
    user = make_user()
    first, _, _ = seed_notifications(db_session, user, 3)

    single = client.put(f"/api/v1/notifications/{first.id}/read", headers=auth_headers(user))
    assert single.status_code == 200
    assert single.json()["unreadCount"] == 2

    everything = client.put("/api/v1/notifications/read-all", headers=auth_headers(user))
    assert everything.json() == {
        "success": True,
        "message": "All notifications marked as read",
        "unreadCount": 0,
    }


def test_cannot_touch_someone_elses_notification(client: TestClient, db_session, make_user) -> None:
    owner = make_user()
    stranger = make_user()
    (record,) = seed_notifications(db_session, owner, 1)

    read = client.put(f"/api/v1/notifications/{record.id}/read", headers=auth_headers(stranger))
    delete = client.delete(f"/api/v1/notifications/{record.id}", headers=auth_headers(stranger))

    assert read.status_code == 404
    assert delete.status_code == 404
    assert read.json()["detail"] == "Notification not found"


def test_delete_notification(client: TestClient, db_session, make_user) -> None:
    user = make_user()
    (record,) = seed_notifications(db_session, user, 1)

    response = client.delete(f"/api/v1/notifications/{record.id}", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["unreadCount"] == 0
    assert db_session.get(Notification, record.id) is None


def test_send_requires_admin(client: TestClient, make_user) -> None:
    teacher = make_user(role="teacher")

    response = client.post(
        "/api/v1/notifications/send",
        json={"title": "Hi", "message": "There", "recipients": "all"},
        headers=auth_headers(teacher),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "You do not have permission to perform this action"


def test_send_to_audience_stores_one_row_per_member(
    client: TestClient, db_session, make_user
) -> None:
    admin = make_user(role="admin")
    students = [make_user(role="student") for _ in range(2)]
    make_user(role="teacher")
    make_user(role="student", is_active=False)

    response = client.post(
        "/api/v1/notifications/send",
        json={
            "title": "Sports day",
            "message": "Bring trainers",
            "type": "success",
            "recipients": "students",
            "metadata": {"event": "sports-day"},
        },
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Notification sent to 2 users",
        "count": 2,
        "delivered": 0,
    }
    rows = db_session.query(Notification).all()
    assert {row.recipient_id for row in rows} == {student.id for student in students}
    assert all(row.sender_id == admin.id for row in rows)
    assert all(row.expires_at is not None for row in rows)

    listing = client.get("/api/v1/notifications/", headers=auth_headers(students[0]))
    (item,) = listing.json()["data"]
    assert item["type"] == "success"
    assert item["metadata"] == {"event": "sports-day"}


def test_send_to_empty_audience_returns_404(client: TestClient, make_user) -> None:
    admin = make_user(role="admin")

    response = client.post(
        "/api/v1/notifications/send",
        json={"title": "Parents evening", "message": "Thursday", "recipients": "parents"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "No users found for the selected recipient group"


def test_send_pushes_to_online_recipients(client: TestClient, make_user) -> None:
    admin = make_user(role="admin")
    online = make_user(role="teacher")
    make_user(role="teacher")

    with client.websocket_connect("/api/v1/ws") as websocket:
        assert authenticate(websocket, online)["data"]["success"] is True

        response = client.post(
            "/api/v1/notifications/send",
            json={"title": "Staff meeting", "message": "Room 4", "type": "info", "recipients": "teachers"},
            headers=auth_headers(admin),
        )
        assert response.json()["count"] == 2
        assert response.json()["delivered"] == 1

        frame = websocket.receive_json()

    assert frame["event"] == "new_notification"
    assert frame["data"]["title"] == "Staff meeting"
    assert frame["data"]["read"] is False
    assert uuid.UUID(frame["data"]["_id"])


def test_notifications_require_authentication(client: TestClient) -> None:
    assert client.get("/api/v1/notifications/").status_code == 401
    assert client.get("/api/v1/notifications/unread-count").status_code == 401
