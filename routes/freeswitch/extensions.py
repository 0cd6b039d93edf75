from collections import Counter
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.domain import Domain
from models.extension import Extension, basic_extension, validate_extension
from models.sip_profile import SipProfile
from models.user import User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.extension import (
    BasicExtensionCreate,
    ExtensionCreate,
    ExtensionListResponse,
    ExtensionResponse,
    ExtensionStats,
    ExtensionUpdate,
)

router = APIRouter(prefix="/freeswitch/extensions", tags=["extensions"])

SORT_FIELDS = ("extension_number", "display_name", "created_at", "updated_at")


def get_extension_or_404(db: Session, extension_id: int) -> Extension:
    extension = db.query(Extension).filter(Extension.id == extension_id).first()
    if not extension:
        raise HTTPException(status_code=404, detail="Extension not found")
    return extension


def check_extension(
    db: Session, data: dict, exclude: Optional[Extension] = None
) -> None:
    """Проверки перед сохранением: формат, уникальность в домене, лимит домена"""
    errors = validate_extension(data)
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    domain_id = data.get("domain_id")
    domain = None
    if domain_id is not None:
        domain = db.query(Domain).filter(Domain.id == domain_id).first()
        if not domain:
            raise HTTPException(status_code=404, detail="Domain not found")

    profile_id = data.get("profile_id")
    if profile_id is not None:
        if not db.query(SipProfile).filter(SipProfile.id == profile_id).first():
            raise HTTPException(status_code=404, detail="SIP profile not found")

    query = db.query(Extension).filter(
        Extension.extension_number == data["extension_number"],
        Extension.domain_id.is_(None) if domain_id is None else Extension.domain_id == domain_id,
    )
    if exclude is not None:
        query = query.filter(Extension.id != exclude.id)
    if query.first():
        raise HTTPException(
            status_code=409,
            detail=f"Extension {data['extension_number']} already exists in this domain",
        )

    # лимит проверяется только при появлении номера в домене
    moving_in = exclude is None or exclude.domain_id != domain_id
    if domain is not None and moving_in and domain.has_reached_extension_limit():
        raise HTTPException(
            status_code=409,
            detail=f"Domain '{domain.name}' reached its limit of {domain.max_extensions} extensions",
        )


def create_extension_record(db: Session, data: dict, user: User) -> Extension:
    check_extension(db, data)

    extension = Extension(**data, created_by=user.id)
    db.add(extension)
    db.commit()
    db.refresh(extension)

    logger.info(f"Extension {extension.extension_number} created by {user.login}")
    return extension


@router.post("", response_model=ExtensionResponse, status_code=201)
def create_extension(
    extension_data: ExtensionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание внутреннего номера"""
    return create_extension_record(db, extension_data.model_dump(), current_user)


@router.post("/basic", response_model=ExtensionResponse, status_code=201)
def create_basic_extension(
    extension_data: BasicExtensionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание номера с настройками каталога и голосовой почты по умолчанию"""
    data = basic_extension(
        extension_data.extension_number,
        extension_data.display_name,
        extension_data.password,
        extension_data.domain_id,
    )
    return create_extension_record(db, data, current_user)


@router.get("", response_model=ExtensionListResponse)
def list_extensions(
    search: Optional[str] = None,
    domain_id: Optional[int] = None,
    profile_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "extension_number",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Список внутренних номеров с фильтрацией и пагинацией"""
    query = db.query(Extension)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Extension.extension_number.ilike(pattern),
                Extension.display_name.ilike(pattern),
                Extension.effective_caller_id_name.ilike(pattern),
            )
        )
    if domain_id is not None:
        query = query.filter(Extension.domain_id == domain_id)
    if profile_id is not None:
        query = query.filter(Extension.profile_id == profile_id)
    if is_active is not None:
        query = query.filter(Extension.is_active == is_active)

    query = apply_sorting(
        query, Extension, sort_by, sort_order, SORT_FIELDS, "extension_number"
    )
    return paginate(query, page, limit)


@router.get("/stats", response_model=ExtensionStats)
def get_extension_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    extensions = db.query(Extension).all()

    by_domain = Counter(
        e.domain.name if e.domain else "unassigned" for e in extensions
    )
    active = sum(1 for e in extensions if e.is_active)
    return {
        "total": len(extensions),
        "active": active,
        "inactive": len(extensions) - active,
        "with_voicemail": sum(1 for e in extensions if e.has_voicemail),
        "with_call_forwarding": sum(1 for e in extensions if e.has_call_forwarding),
        "by_domain": dict(by_domain),
    }


@router.get("/by-domain/{domain_id}", response_model=list[ExtensionResponse])
def get_extensions_by_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Extension)
        .filter(Extension.domain_id == domain_id)
        .order_by(Extension.extension_number)
        .all()
    )


@router.get("/by-number/{number}", response_model=ExtensionResponse)
def get_extension_by_number(
    number: str,
    domain_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Extension).filter(Extension.extension_number == number)
    if domain_id is not None:
        query = query.filter(Extension.domain_id == domain_id)

    extension = query.first()
    if not extension:
        raise HTTPException(status_code=404, detail="Extension not found")
    return extension


@router.get("/{extension_id}", response_model=ExtensionResponse)
def get_extension(
    extension_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_extension_or_404(db, extension_id)


@router.put("/{extension_id}", response_model=ExtensionResponse)
def update_extension(
    extension_id: int,
    extension_update: ExtensionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление внутреннего номера"""
    extension = get_extension_or_404(db, extension_id)

    update_data = extension_update.model_dump(exclude_unset=True, exclude_none=True)
    merged = {
        "extension_number": extension.extension_number,
        "password": extension.password,
        "domain_id": extension.domain_id,
        "profile_id": extension.profile_id,
        "voicemail_settings": extension.voicemail_settings,
        **update_data,
    }
    check_extension(db, merged, exclude=extension)

    # Обновляем только переданные поля
    for field, value in update_data.items():
        setattr(extension, field, value)
    extension.updated_by = current_user.id

    db.commit()
    db.refresh(extension)
    return extension


@router.delete("/{extension_id}")
def delete_extension(
    extension_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление внутреннего номера"""
    extension = get_extension_or_404(db, extension_id)
    number = extension.extension_number

    db.delete(extension)
    db.commit()

    logger.info(f"Extension {number} deleted by {current_user.login}")
    return {"message": f"Extension {number} deleted successfully"}
