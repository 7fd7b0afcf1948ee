"""
Fiscal-year reset endpoints
"""
from typing import Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin
from app.models.employee import Employee
from app.schemas.fiscal_year import FiscalResetRequest, FiscalResetResponse, FiscalYearStatusOut
from app.services import fiscal_year_service

router = APIRouter()


@router.post("/reset", response_model=FiscalResetResponse)
async def reset_fiscal_year(
    data: Optional[FiscalResetRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """
    Zero all ledgers if the fiscal-year boundary has passed (admin only)

    Safe to call repeatedly: only the first call in a fiscal year resets.
    """
    as_of = data.as_of if data else None
    return fiscal_year_service.reset_at_fiscal_boundary(db, now=as_of, actor_id=current_user.id)


@router.get("/status", response_model=FiscalYearStatusOut)
async def fiscal_year_status(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return fiscal_year_service.get_fiscal_year_status(db)
