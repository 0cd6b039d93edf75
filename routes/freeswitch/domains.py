from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.dialplan import Dialplan
from models.domain import Domain
from models.extension import Extension
from models.gateway import Gateway
from models.sip_profile import SipProfile
from models.user import User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.domain import (
    DomainCreate,
    DomainListResponse,
    DomainResponse,
    DomainStats,
    DomainUpdate,
    DomainUsage,
)

router = APIRouter(prefix="/freeswitch/domains", tags=["domains"])

SORT_FIELDS = ("name", "created_at", "updated_at")


def get_domain_or_404(db: Session, domain_id: int) -> Domain:
    domain = db.query(Domain).filter(Domain.id == domain_id).first()
    if not domain:
        raise HTTPException(status_code=404, detail="Domain not found")
    return domain


@router.post("", response_model=DomainResponse, status_code=201)
def create_domain(
    domain_data: DomainCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание домена"""
    if db.query(Domain).filter(Domain.name == domain_data.name).first():
        raise HTTPException(
            status_code=409, detail=f"Domain with name '{domain_data.name}' already exists"
        )

    domain = Domain(**domain_data.model_dump(), created_by=current_user.id)
    errors = domain.validate()
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    db.add(domain)
    db.commit()
    db.refresh(domain)

    logger.info(f"Domain {domain.name} created by {current_user.login}")
    return domain


@router.get("", response_model=DomainListResponse)
def list_domains(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Список доменов с фильтрацией и пагинацией"""
    query = db.query(Domain)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Domain.name.ilike(pattern),
                Domain.display_name.ilike(pattern),
                Domain.description.ilike(pattern),
            )
        )
    if is_active is not None:
        query = query.filter(Domain.is_active == is_active)

    query = apply_sorting(query, Domain, sort_by, sort_order, SORT_FIELDS, "name")
    return paginate(query, page, limit)


@router.get("/stats", response_model=DomainStats)
def get_domain_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    total = db.query(Domain).count()
    active = db.query(Domain).filter(Domain.is_active.is_(True)).count()
    return {"total": total, "active": active, "inactive": total - active}


@router.get("/{domain_id}", response_model=DomainResponse)
def get_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_domain_or_404(db, domain_id)


@router.get("/{domain_id}/usage", response_model=DomainUsage)
def get_domain_usage(
    domain_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Использование лимита внутренних номеров"""
    return get_domain_or_404(db, domain_id).usage()


@router.put("/{domain_id}", response_model=DomainResponse)
def update_domain(
    domain_id: int,
    domain_update: DomainUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление домена"""
    domain = get_domain_or_404(db, domain_id)

    update_data = domain_update.model_dump(exclude_unset=True, exclude_none=True)
    new_name = update_data.get("name")
    if new_name and new_name != domain.name:
        if db.query(Domain).filter(Domain.name == new_name).first():
            raise HTTPException(
                status_code=409, detail=f"Domain with name '{new_name}' already exists"
            )

    # Обновляем только переданные поля
    for field, value in update_data.items():
        setattr(domain, field, value)
    domain.updated_by = current_user.id

    errors = domain.validate()
    if errors:
        db.rollback()
        raise HTTPException(status_code=400, detail=errors)

    db.commit()
    db.refresh(domain)
    return domain


@router.delete("/{domain_id}")
def delete_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление домена"""
    domain = get_domain_or_404(db, domain_id)

    usage = {
        "extension(s)": db.query(Extension).filter(Extension.domain_id == domain.id).count(),
        "SIP profile(s)": db.query(SipProfile).filter(SipProfile.domain_id == domain.id).count(),
        "gateway(s)": db.query(Gateway).filter(Gateway.domain_id == domain.id).count(),
        "dialplan(s)": db.query(Dialplan).filter(Dialplan.domain_id == domain.id).count(),
    }
    in_use = [f"{count} {label}" for label, count in usage.items() if count]
    if in_use:
        raise HTTPException(
            status_code=409,
            detail=f"Domain '{domain.name}' is in use by {', '.join(in_use)}",
        )

    name = domain.name
    db.delete(domain)
    db.commit()

    logger.info(f"Domain {name} deleted by {current_user.login}")
    return {"message": f"Domain {name} deleted successfully"}
