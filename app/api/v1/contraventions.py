"""
Contravention endpoints
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin
from app.models.contravention import ContraventionCategory, ContraventionStatus
from app.models.employee import Employee
from app.schemas.contravention import (
    ContraventionCreate,
    ContraventionOut,
    ContraventionListResponse,
    ContraventionUserUpdate,
    ContraventionResubmit,
    ContraventionAdminUpdate,
    ReviewRequest,
    UploadApprovalRequest,
    MarkCompleteRequest,
)
from app.services import contravention_service

router = APIRouter()


@router.post("", response_model=ContraventionOut, status_code=201)
async def create_contravention(
    data: ContraventionCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Log a contravention (any authenticated user)

    Adds the type's default points to the employee's ledger and raises an
    escalation when a tier threshold is crossed.
    """
    return contravention_service.create_contravention(db, data.model_dump(), logged_by=current_user)


@router.get("", response_model=ContraventionListResponse)
async def list_contraventions(
    employee_id: Optional[int] = Query(None),
    status: Optional[ContraventionStatus] = Query(None),
    type_id: Optional[int] = Query(None),
    category: Optional[ContraventionCategory] = Query(None),
    logged_by_id: Optional[int] = Query(None),
    approver_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None, description="Incident date from (inclusive)"),
    date_to: Optional[date] = Query(None, description="Incident date to (inclusive)"),
    search: Optional[str] = Query(None, description="Matches reference number, description or vendor"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return contravention_service.list_contraventions(
        db,
        employee_id=employee_id,
        status_filter=status,
        type_id=type_id,
        category=category,
        logged_by_id=logged_by_id,
        approver_id=approver_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/{contravention_id}", response_model=ContraventionOut)
async def get_contravention(
    contravention_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return contravention_service.get_contravention(db, contravention_id)


@router.post("/{contravention_id}/review", response_model=ContraventionOut)
async def review_contravention(
    contravention_id: int,
    data: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Approve or reject (assigned approver or admin)"""
    return contravention_service.review_contravention(
        db, contravention_id, reviewer=current_user, approve=data.approve, notes=data.notes
    )


@router.post("/{contravention_id}/upload-approval", response_model=ContraventionOut)
async def upload_approval(
    contravention_id: int,
    data: UploadApprovalRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Attach the approval document URL

    Admins can upload/replace approval documents regardless of status.
    """
    return contravention_service.upload_approval(db, contravention_id, data.approval_doc_url, actor=current_user)


@router.post("/{contravention_id}/complete", response_model=ContraventionOut)
async def mark_complete(
    contravention_id: int,
    data: MarkCompleteRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """PENDING_REVIEW -> COMPLETED (admin only)"""
    return contravention_service.mark_complete(db, contravention_id, admin=current_user, notes=data.notes)


@router.patch("/{contravention_id}", response_model=ContraventionOut)
async def user_update_contravention(
    contravention_id: int,
    data: ContraventionUserUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Submitter edit while PENDING_APPROVAL or REJECTED"""
    return contravention_service.user_update(
        db, contravention_id, current_user, data.model_dump(exclude_unset=True)
    )


@router.post("/{contravention_id}/resubmit", response_model=ContraventionOut)
async def resubmit_contravention(
    contravention_id: int,
    data: ContraventionResubmit,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """REJECTED -> PENDING_APPROVAL (submitter only)"""
    return contravention_service.resubmit(
        db, contravention_id, current_user, data.model_dump(exclude_unset=True)
    )


@router.patch("/{contravention_id}/admin", response_model=ContraventionOut)
async def admin_update_contravention(
    contravention_id: int,
    data: ContraventionAdminUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Administrative correction (admin only)"""
    return contravention_service.admin_update(
        db, contravention_id, data.model_dump(exclude_unset=True), admin=current_user
    )


@router.delete("/{contravention_id}", status_code=204)
async def delete_contravention(
    contravention_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Delete a contravention and reverse its points (admin only)"""
    contravention_service.delete_contravention(db, contravention_id, admin=current_user)
    return Response(status_code=204)
