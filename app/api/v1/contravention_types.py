"""
Contravention type registry endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin
from app.models.employee import Employee
from app.schemas.contravention import ContraventionTypeCreate, ContraventionTypeUpdate, ContraventionTypeOut
from app.services import contravention_type_service

router = APIRouter()


@router.get("", response_model=List[ContraventionTypeOut])
async def list_contravention_types(
    active_only: bool = Query(False, description="Only return active types"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return contravention_type_service.list_types(db, active_only=active_only)


@router.post("", response_model=ContraventionTypeOut, status_code=201)
async def create_contravention_type(
    data: ContraventionTypeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Create a contravention type (admin only)"""
    return contravention_type_service.create_type(
        db,
        name=data.name,
        category=data.category,
        default_points=data.default_points,
        description=data.description,
        actor_id=current_user.id,
    )


@router.patch("/{type_id}", response_model=ContraventionTypeOut)
async def update_contravention_type(
    type_id: int,
    data: ContraventionTypeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """
    Correct a contravention type (admin only)

    Already-logged contraventions keep the points they were created with.
    """
    return contravention_type_service.update_type(
        db, type_id, data.model_dump(exclude_unset=True), actor_id=current_user.id
    )
