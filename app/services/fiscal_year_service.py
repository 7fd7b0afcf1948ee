"""
Fiscal-year reset - zero every ledger once per fiscal year.

A FiscalYearReset marker row records each fiscal-year start that has been
processed, so repeated runs within one fiscal year are no-ops.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.points import EmployeePoints, FiscalYearReset, PointsEventKind
from app.services.audit_service import log_audit
from app.services.points_service import record_event
from app.utils.datetime_utils import local_today, now_utc
from app.utils.fiscal_year import (
    fiscal_year_end,
    fiscal_year_label,
    fiscal_year_start,
    fiscal_year_start_utc,
    next_fiscal_year_start,
)

logger = logging.getLogger(__name__)


def get_last_reset(db: Session) -> Optional[FiscalYearReset]:
    return db.query(FiscalYearReset).order_by(FiscalYearReset.fiscal_year_start.desc()).first()


def _marker_dict(marker: Optional[FiscalYearReset]) -> Optional[Dict[str, Any]]:
    if marker is None:
        return None
    return {
        "fiscal_year_start": marker.fiscal_year_start,
        "fiscal_year_label": marker.fiscal_year_label,
        "performed_at": marker.performed_at,
        "employees_reset": marker.employees_reset,
        "total_points_reset": marker.total_points_reset,
        "performed_by": marker.performed_by,
    }


def reset_at_fiscal_boundary(
    db: Session,
    now: Optional[datetime] = None,
    actor_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Reset all ledgers if the fiscal-year boundary has been crossed since the
    last recorded reset.

    Without any marker, the boundary counts as crossed only when some ledger
    predates the current fiscal year; otherwise a baseline marker is written.

    Returns:
        Dict with performed flag, fiscal_year_label, employees_reset,
        total_points_reset and per-employee details
    """
    now = now or now_utc()
    fy_start = fiscal_year_start(local_today(now))
    label = fiscal_year_label(fy_start)
    result: Dict[str, Any] = {
        "performed": False,
        "baseline": False,
        "fiscal_year_label": label,
        "fiscal_year_start": fy_start,
        "employees_reset": 0,
        "total_points_reset": 0,
        "details": [],
    }

    marker = get_last_reset(db)
    if marker is not None and marker.fiscal_year_start >= fy_start:
        logger.info("Fiscal reset skipped: %s already processed on %s", label, marker.performed_at)
        return result

    if marker is None:
        older_ledger = (
            db.query(EmployeePoints)
            .filter(EmployeePoints.created_at < fiscal_year_start_utc(fy_start))
            .first()
        )
        if older_ledger is None:
            db.add(FiscalYearReset(
                fiscal_year_start=fy_start,
                fiscal_year_label=label,
                performed_at=now,
                employees_reset=0,
                total_points_reset=0,
                performed_by=actor_id,
            ))
            db.commit()
            logger.info("Fiscal reset baseline recorded for %s; no ledger predates it", label)
            result["baseline"] = True
            return result

    ledgers = (
        db.query(EmployeePoints)
        .order_by(EmployeePoints.id)
        .with_for_update()
        .all()
    )

    employees_reset = 0
    total_points_reset = 0
    details = []
    for ledger in ledgers:
        previous_total = ledger.total_points or 0
        if previous_total != 0:
            # Negative balances only exist with the floor disabled; they are cleared with a compensating add
            kind = PointsEventKind.DECAY if previous_total > 0 else PointsEventKind.ADD
            record_event(
                db,
                ledger,
                -previous_total,
                kind,
                f"Fiscal year reset {label}: {previous_total} points cleared",
                clamp=False,
            )
            employees_reset += 1
            total_points_reset += previous_total
            details.append({
                "employee_id": ledger.employee_id,
                "previous_total": previous_total,
                "previous_level": ledger.current_level,
            })
        ledger.current_level = None
        ledger.last_calculated = now

    db.add(FiscalYearReset(
        fiscal_year_start=fy_start,
        fiscal_year_label=label,
        performed_at=now,
        employees_reset=employees_reset,
        total_points_reset=total_points_reset,
        performed_by=actor_id,
    ))
    log_audit(
        db=db,
        actor_id=actor_id,
        action="FISCAL_RESET_RUN",
        entity_type="fiscal_year",
        entity_id=None,
        meta={
            "fiscal_year_label": label,
            "fiscal_year_start": fy_start,
            "employees_reset": employees_reset,
            "total_points_reset": total_points_reset,
        },
        commit=False,
    )
    db.commit()

    logger.info(
        "Fiscal reset %s complete: employees_reset=%s total_points_reset=%s",
        label,
        employees_reset,
        total_points_reset,
    )
    result.update({
        "performed": True,
        "employees_reset": employees_reset,
        "total_points_reset": total_points_reset,
        "details": details,
    })
    return result


def get_fiscal_year_status(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or now_utc()
    today = local_today(now)
    fy_start = fiscal_year_start(today)
    next_start = next_fiscal_year_start(fy_start)

    with_points = db.query(EmployeePoints).filter(EmployeePoints.total_points > 0)
    outstanding = sum(ledger.total_points for ledger in with_points.all())

    return {
        "fiscal_year_label": fiscal_year_label(fy_start),
        "fiscal_year_start": fy_start,
        "fiscal_year_end": fiscal_year_end(fy_start),
        "next_reset_date": next_start,
        "days_until_reset": (next_start - today).days,
        "last_reset": _marker_dict(get_last_reset(db)),
        "employees_with_points": with_points.count(),
        "total_points_outstanding": outstanding,
    }
