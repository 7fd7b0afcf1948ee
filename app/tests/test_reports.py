"""
Tests for dashboard and breakdown reports
"""
from datetime import date

from app.models.contravention import ContraventionStatus
from app.services import report_service
from app.utils.datetime_utils import local_today

CONTRAVENTIONS = "/api/v1/contraventions"


def _log(client, headers, employee, ctype, value=None, incident_date=None):
    body = {
        "employee_id": employee.id,
        "type_id": ctype.id,
        "incident_date": (incident_date or local_today()).isoformat(),
        "description": "Purchase raised without an AOR",
    }
    if value is not None:
        body["value_amount"] = value
    response = client.post(CONTRAVENTIONS, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_points_bucket():
    assert report_service.points_bucket(0) == "1-2"
    assert report_service.points_bucket(2) == "1-2"
    assert report_service.points_bucket(3) == "3-4"
    assert report_service.points_bucket(4) == "3-4"
    assert report_service.points_bucket(5) == "5+"


def test_dashboard_stats(client, db, admin, employee, make_employee, missing_aor_type, no_approval_type, auth_headers):
    headers = auth_headers(admin)
    other = make_employee("EMP002")
    _log(client, headers, employee, no_approval_type, value=100)
    _log(client, headers, employee, no_approval_type, value=50.5)
    _log(client, headers, other, missing_aor_type)
    _log(client, headers, other, missing_aor_type, incident_date=date(2001, 1, 1))

    stats = report_service.get_dashboard_stats(db)

    summary = stats["summary"]
    assert summary["total_contraventions"] == 4
    assert summary["pending_upload"] == 4
    assert summary["this_month"] == 4
    assert summary["high_points_issues"] == 2
    assert summary["total_value_affected"] == 150.5
    assert stats["by_status"][ContraventionStatus.PENDING_UPLOAD.value] == 4
    assert stats["by_status"][ContraventionStatus.COMPLETED.value] == 0
    assert stats["by_points"] == {"1-2": 0, "3-4": 2, "5+": 2}

    # Employee is at 10 points (second tier); other at 6 (first tier)
    assert stats["employees_at_risk"] == [
        {"id": employee.id, "name": employee.name, "points": 10, "level": "LEVEL_2"}
    ]

    trend = stats["monthly_trend"]
    assert len(trend) == 12
    assert trend[-1] == {"month": local_today().strftime("%Y-%m"), "count": 3}
    assert sum(m["count"] for m in trend) == 3


def test_type_breakdown_includes_unused_types(client, db, admin, employee, missing_aor_type, no_approval_type, auth_headers):
    headers = auth_headers(admin)
    _log(client, headers, employee, missing_aor_type, value=200)
    _log(client, headers, employee, missing_aor_type, value=25)

    rows = {row["name"]: row for row in report_service.get_type_breakdown(db)}

    assert rows[missing_aor_type.name]["count"] == 2
    assert rows[missing_aor_type.name]["total_value"] == 225.0
    assert rows[no_approval_type.name]["count"] == 0
    assert rows[no_approval_type.name]["total_value"] == 0.0


def test_department_breakdown(client, db, admin, employee, make_employee, missing_aor_type, auth_headers):
    headers = auth_headers(admin)
    _log(client, headers, employee, missing_aor_type)

    rows = {row["name"]: row for row in report_service.get_department_breakdown(db)}

    procurement = rows["Procurement"]
    assert procurement["contravention_count"] == 1
    assert procurement["total_points"] == 3
    assert procurement["by_points"] == {"1-2": 0, "3-4": 1, "5+": 0}
    # admin, manager and employee all sit in Procurement
    assert procurement["employee_count"] == 3


def test_repeat_offenders(client, db, admin, employee, make_employee, missing_aor_type, no_approval_type, auth_headers):
    headers = auth_headers(admin)
    one_off = make_employee("EMP002")
    first = _log(client, headers, employee, missing_aor_type, incident_date=date(2026, 5, 1))
    second = _log(client, headers, employee, no_approval_type, incident_date=date(2026, 6, 1))
    _log(client, headers, one_off, missing_aor_type)

    offenders = report_service.get_repeat_offenders(db)

    assert [o["id"] for o in offenders] == [employee.id]
    offender = offenders[0]
    assert offender["contravention_count"] == 2
    assert offender["total_points"] == 8
    assert offender["current_level"] == "LEVEL_1"
    assert [c["reference_no"] for c in offender["recent_contraventions"]] == [
        second["reference_no"],
        first["reference_no"],
    ]
    assert offender["recent_contraventions"][0]["type_name"] == no_approval_type.name

    assert {o["id"] for o in report_service.get_repeat_offenders(db, min_count=1)} == {employee.id, one_off.id}


def test_reports_api_access(client, db, admin, approver, employee, missing_aor_type, auth_headers):
    _log(client, auth_headers(admin), employee, missing_aor_type)

    for path in ("/dashboard", "/departments", "/types", "/repeat-offenders"):
        assert client.get(f"/api/v1/reports{path}", headers=auth_headers(employee)).status_code == 403
        assert client.get(f"/api/v1/reports{path}", headers=auth_headers(approver)).status_code == 200

    response = client.get("/api/v1/reports/dashboard", headers=auth_headers(admin))
    assert response.json()["summary"]["total_contraventions"] == 1
