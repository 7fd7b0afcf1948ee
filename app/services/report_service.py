"""
Report service - read-only statistics over contraventions and point ledgers
"""
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.contravention import Contravention, ContraventionStatus, ContraventionType
from app.models.employee import Employee
from app.models.points import EmployeePoints
from app.services.escalation_evaluator import EscalationEvaluator, get_evaluator
from app.utils.datetime_utils import UTC, business_tz, local_today, now_utc

HIGH_POINTS_THRESHOLD = 5
REPEAT_OFFENDER_MIN_COUNT = 2
AT_RISK_LIMIT = 10
TREND_MONTHS = 12
RECENT_CONTRAVENTIONS = 5
UNASSIGNED_DEPARTMENT = "Unassigned"


def points_bucket(points: int) -> str:
    if points >= 5:
        return "5+"
    if points >= 3:
        return "3-4"
    return "1-2"


def _empty_buckets() -> Dict[str, int]:
    return {"1-2": 0, "3-4": 0, "5+": 0}


def _shift_month(month_start: date, months: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _local_midnight_utc(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=business_tz()).astimezone(UTC)


def get_dashboard_stats(
    db: Session,
    now: Optional[datetime] = None,
    evaluator: Optional[EscalationEvaluator] = None,
) -> Dict[str, Any]:
    """
    Dashboard counts.

    Months are calendar months in the business timezone. Employees at risk
    are those at the second tier of the matrix or above.
    """
    now = now or now_utc()
    evaluator = evaluator or get_evaluator()
    today = local_today(now)
    month_start = today.replace(day=1)
    month_start_utc = _local_midnight_utc(month_start)
    next_month_utc = _local_midnight_utc(_shift_month(month_start, 1))

    total = db.query(func.count(Contravention.id)).scalar() or 0
    pending_upload = (
        db.query(func.count(Contravention.id))
        .filter(Contravention.status == ContraventionStatus.PENDING_UPLOAD)
        .scalar()
        or 0
    )
    this_month = (
        db.query(func.count(Contravention.id))
        .filter(Contravention.created_at >= month_start_utc, Contravention.created_at < next_month_utc)
        .scalar()
        or 0
    )
    high_points = (
        db.query(func.count(Contravention.id))
        .filter(
            Contravention.points >= HIGH_POINTS_THRESHOLD,
            Contravention.status != ContraventionStatus.COMPLETED,
        )
        .scalar()
        or 0
    )
    value_sum = db.query(func.sum(Contravention.value_amount)).scalar()

    by_status = {s.value: 0 for s in ContraventionStatus}
    for status_value, count in db.query(Contravention.status, func.count(Contravention.id)).group_by(Contravention.status):
        by_status[ContraventionStatus(status_value).value] = count

    by_points = _empty_buckets()
    for (points,) in db.query(Contravention.points):
        by_points[points_bucket(points)] += 1

    risk_codes = [tier.code for tier in evaluator.tiers[1:]]
    at_risk_rows = (
        db.query(EmployeePoints)
        .options(joinedload(EmployeePoints.employee))
        .filter(EmployeePoints.current_level.in_(risk_codes))
        .order_by(EmployeePoints.total_points.desc(), EmployeePoints.employee_id.asc())
        .limit(AT_RISK_LIMIT)
        .all()
    ) if risk_codes else []

    trend_start = _shift_month(month_start, -(TREND_MONTHS - 1))
    month_counts: Dict[str, int] = defaultdict(int)
    for (incident_date,) in db.query(Contravention.incident_date).filter(Contravention.incident_date >= trend_start):
        month_counts[incident_date.strftime("%Y-%m")] += 1
    monthly_trend = []
    for offset in range(TREND_MONTHS):
        key = _shift_month(trend_start, offset).strftime("%Y-%m")
        monthly_trend.append({"month": key, "count": month_counts.get(key, 0)})

    return {
        "summary": {
            "total_contraventions": total,
            "pending_upload": pending_upload,
            "this_month": this_month,
            "high_points_issues": high_points,
            "total_value_affected": float(value_sum or 0),
        },
        "by_status": by_status,
        "by_points": by_points,
        "employees_at_risk": [
            {
                "id": ledger.employee_id,
                "name": ledger.employee.name,
                "points": ledger.total_points,
                "level": ledger.current_level,
            }
            for ledger in at_risk_rows
        ],
        "monthly_trend": monthly_trend,
    }


def get_department_breakdown(db: Session) -> List[Dict[str, Any]]:
    """Headcount, contravention count, points and point buckets per department"""
    headcount: Dict[str, int] = defaultdict(int)
    for (department,) in db.query(Employee.department):
        headcount[department or UNASSIGNED_DEPARTMENT] += 1

    rows: Dict[str, Dict[str, Any]] = {}
    for name in sorted(headcount):
        rows[name] = {
            "name": name,
            "employee_count": headcount[name],
            "contravention_count": 0,
            "total_points": 0,
            "by_points": _empty_buckets(),
        }

    query = db.query(Employee.department, Contravention.points).join(
        Contravention, Contravention.employee_id == Employee.id
    )
    for department, points in query:
        row = rows[department or UNASSIGNED_DEPARTMENT]
        row["contravention_count"] += 1
        row["total_points"] += points
        row["by_points"][points_bucket(points)] += 1

    return list(rows.values())


def get_type_breakdown(db: Session) -> List[Dict[str, Any]]:
    """Contravention count and total value per type, including unused types"""
    results = (
        db.query(
            ContraventionType,
            func.count(Contravention.id),
            func.sum(Contravention.value_amount),
        )
        .outerjoin(Contravention, Contravention.type_id == ContraventionType.id)
        .group_by(ContraventionType.id)
        .order_by(func.count(Contravention.id).desc(), ContraventionType.name.asc())
        .all()
    )
    return [
        {
            "id": ctype.id,
            "name": ctype.name,
            "category": ctype.category,
            "count": count,
            "total_value": float(total_value or 0),
        }
        for ctype, count, total_value in results
    ]


def get_repeat_offenders(db: Session, min_count: int = REPEAT_OFFENDER_MIN_COUNT) -> List[Dict[str, Any]]:
    """Employees with at least min_count contraventions, most frequent first"""
    counts = (
        db.query(Contravention.employee_id, func.count(Contravention.id).label("contravention_count"))
        .group_by(Contravention.employee_id)
        .having(func.count(Contravention.id) >= min_count)
        .order_by(func.count(Contravention.id).desc(), Contravention.employee_id.asc())
        .all()
    )

    offenders = []
    for employee_id, contravention_count in counts:
        employee = (
            db.query(Employee)
            .options(joinedload(Employee.points_record))
            .filter(Employee.id == employee_id)
            .one()
        )
        recent = (
            db.query(Contravention)
            .options(joinedload(Contravention.type))
            .filter(Contravention.employee_id == employee_id)
            .order_by(Contravention.incident_date.desc(), Contravention.id.desc())
            .limit(RECENT_CONTRAVENTIONS)
            .all()
        )
        ledger = employee.points_record
        offenders.append({
            "id": employee.id,
            "emp_code": employee.emp_code,
            "name": employee.name,
            "department": employee.department or UNASSIGNED_DEPARTMENT,
            "contravention_count": contravention_count,
            "total_points": ledger.total_points if ledger else 0,
            "current_level": ledger.current_level if ledger else None,
            "recent_contraventions": [
                {
                    "id": c.id,
                    "reference_no": c.reference_no,
                    "points": c.points,
                    "incident_date": c.incident_date,
                    "type_name": c.type.name if c.type else None,
                }
                for c in recent
            ],
        })
    return offenders
