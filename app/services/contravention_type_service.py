"""
Contravention type registry
"""
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import DEFAULT_CONTRAVENTION_TYPES
from app.models.contravention import ContraventionType, ContraventionCategory
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def list_types(db: Session, active_only: bool = False) -> List[ContraventionType]:
    query = db.query(ContraventionType)
    if active_only:
        query = query.filter(ContraventionType.is_active.is_(True))
    return query.order_by(ContraventionType.category, ContraventionType.name).all()


def get_type(db: Session, type_id: int) -> ContraventionType:
    ctype = db.query(ContraventionType).filter(ContraventionType.id == type_id).first()
    if not ctype:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contravention type not found")
    return ctype


def create_type(
    db: Session,
    name: str,
    category: ContraventionCategory,
    default_points: int,
    description: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> ContraventionType:
    if db.query(ContraventionType).filter(ContraventionType.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Contravention type with this name already exists",
        )

    ctype = ContraventionType(
        name=name,
        category=category,
        default_points=default_points,
        description=description,
        is_active=True,
    )
    db.add(ctype)
    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="CONTRAVENTION_TYPE_CREATE",
        entity_type="contravention_type",
        entity_id=ctype.id,
        meta={"name": name, "category": category, "default_points": default_points},
        commit=False,
    )
    db.commit()
    db.refresh(ctype)
    return ctype


def update_type(db: Session, type_id: int, changes: dict, actor_id: Optional[int] = None) -> ContraventionType:
    """
    Administrative correction. Existing contraventions keep the points they
    were logged with.
    """
    ctype = get_type(db, type_id)

    new_name = changes.get("name")
    if new_name and new_name != ctype.name:
        clash = db.query(ContraventionType).filter(
            ContraventionType.name == new_name,
            ContraventionType.id != type_id,
        ).first()
        if clash:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Contravention type with this name already exists",
            )

    before = {}
    for field, value in changes.items():
        before[field] = getattr(ctype, field)
        setattr(ctype, field, value)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="CONTRAVENTION_TYPE_UPDATE",
        entity_type="contravention_type",
        entity_id=ctype.id,
        meta={"before": before, "after": changes},
        commit=False,
    )
    db.commit()
    db.refresh(ctype)
    return ctype


def seed_default_types(db: Session) -> int:
    """Insert the default catalog when the table is empty. Returns rows created."""
    if db.query(ContraventionType).first():
        return 0

    for item in DEFAULT_CONTRAVENTION_TYPES:
        db.add(ContraventionType(
            name=item["name"],
            category=ContraventionCategory(item["category"]),
            default_points=item["default_points"],
            description=item.get("description"),
            is_active=True,
        ))
    db.commit()
    logger.info("Seeded %s default contravention types", len(DEFAULT_CONTRAVENTION_TYPES))
    return len(DEFAULT_CONTRAVENTION_TYPES)
