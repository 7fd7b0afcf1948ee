"""
Tests for in-app escalation notifications
"""
from app.models.notification import Notification, NotificationType
from app.models.points import PointsEventKind
from app.services import points_service


def test_manager_receives_action_required(client, db, employee, manager, auth_headers):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")

    response = client.get("/api/v1/notifications", headers=auth_headers(manager))

    assert response.status_code == 200
    data = response.json()
    assert data["unread"] == 1
    assert len(data["items"]) == 1
    item = data["items"][0]
    assert item["event_type"] == NotificationType.ACTION_REQUIRED
    assert item["payload"]["employee_id"] == employee.id
    assert item["payload"]["actions_required"] == ["Notify reporting manager"]


def test_employee_receives_tier_crossed(client, db, employee, auth_headers):
    points_service.apply_delta(db, employee.id, 10, PointsEventKind.ADD, "Contravention")

    response = client.get("/api/v1/notifications", headers=auth_headers(employee))

    items = response.json()["items"]
    assert [i["event_type"] for i in items] == [NotificationType.TIER_CROSSED]
    assert items[0]["payload"]["tier_code"] == "LEVEL_2"


def test_mark_read(client, db, employee, auth_headers):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    headers = auth_headers(employee)
    notification_id = client.get("/api/v1/notifications", headers=headers).json()["items"][0]["id"]

    response = client.patch(f"/api/v1/notifications/{notification_id}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    response = client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers)
    assert response.json() == {"items": [], "unread": 0}


def test_cannot_read_someone_elses_notification(client, db, employee, make_employee, auth_headers):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    peer = make_employee("EMP002")
    notification = db.query(Notification).filter(Notification.recipient_id == employee.id).first()

    response = client.patch(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(peer))

    assert response.status_code == 404
