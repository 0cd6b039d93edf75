import csv
import io
import json
from typing import Optional

import yaml
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from esl import EslClient, get_esl
from models.domain import Domain
from models.extension import Extension
from models.gateway import Gateway
from models.sip_profile import ProfileType, SipProfile
from models.user import User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.common import MessageResponse
from schemas.sip_profile import (
    SipProfileCreate,
    SipProfileListResponse,
    SipProfileResponse,
    SipProfileStats,
    SipProfileTestResult,
    SipProfileUpdate,
)

router = APIRouter(prefix="/freeswitch/sip-profiles", tags=["sip-profiles"])

SORT_FIELDS = ("name", "type", "bind_port", "order", "created_at", "updated_at")
EXPORT_FIELDS = (
    "id",
    "name",
    "display_name",
    "type",
    "domain_id",
    "bind_ip",
    "bind_port",
    "tls_port",
    "rtp_ip",
    "ext_rtp_ip",
    "ext_sip_ip",
    "is_active",
    "is_default",
    "order",
)


def get_profile_or_404(db: Session, profile_id: int) -> SipProfile:
    profile = db.query(SipProfile).filter(SipProfile.id == profile_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="SIP profile not found")
    return profile


def check_conflicts(db: Session, data: dict, exclude_id: Optional[int] = None):
    """409, если имя или пара bind_ip:bind_port уже заняты другим профилем"""
    name = data.get("name")
    if name:
        query = db.query(SipProfile).filter(SipProfile.name == name)
        if exclude_id is not None:
            query = query.filter(SipProfile.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=409, detail=f"SIP profile with name '{name}' already exists"
            )

    bind_ip = data.get("bind_ip")
    if bind_ip:
        query = db.query(SipProfile).filter(
            SipProfile.bind_ip == bind_ip,
            SipProfile.bind_port == data.get("bind_port", 5060),
        )
        if exclude_id is not None:
            query = query.filter(SipProfile.id != exclude_id)
        conflict = query.first()
        if conflict:
            raise HTTPException(
                status_code=409,
                detail=(
                    f"Address {bind_ip}:{conflict.bind_port} is already used "
                    f"by SIP profile '{conflict.name}'"
                ),
            )

    domain_id = data.get("domain_id")
    if domain_id is not None and not db.query(Domain).filter(Domain.id == domain_id).first():
        raise HTTPException(status_code=404, detail="Domain not found")


def clear_default(db: Session, exclude_id: Optional[int] = None):
    query = db.query(SipProfile).filter(SipProfile.is_default.is_(True))
    if exclude_id is not None:
        query = query.filter(SipProfile.id != exclude_id)
    query.update({SipProfile.is_default: False}, synchronize_session=False)


@router.post("", response_model=SipProfileResponse, status_code=201)
def create_sip_profile(
    profile_data: SipProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание SIP профиля"""
    data = profile_data.model_dump()
    check_conflicts(db, data)

    if data["is_default"]:
        clear_default(db)

    profile = SipProfile(**data, created_by=current_user.id)
    db.add(profile)
    db.commit()
    db.refresh(profile)

    logger.info(f"SIP profile {profile.name} created by {current_user.login}")
    return profile


@router.get("", response_model=SipProfileListResponse)
def list_sip_profiles(
    search: Optional[str] = None,
    type: Optional[ProfileType] = None,
    domain_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "order",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Список SIP профилей с фильтрацией и пагинацией"""
    query = db.query(SipProfile)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                SipProfile.name.ilike(pattern),
                SipProfile.display_name.ilike(pattern),
                SipProfile.description.ilike(pattern),
            )
        )
    if type is not None:
        query = query.filter(SipProfile.type == type)
    if domain_id is not None:
        query = query.filter(SipProfile.domain_id == domain_id)
    if is_active is not None:
        query = query.filter(SipProfile.is_active == is_active)

    query = apply_sorting(query, SipProfile, sort_by, sort_order, SORT_FIELDS, "order")
    return paginate(query, page, limit)


@router.get("/stats", response_model=SipProfileStats)
def get_sip_profile_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    profiles = db.query(SipProfile).all()

    by_type = {t.value: 0 for t in ProfileType}
    for profile in profiles:
        by_type[profile.type.value] += 1

    active = sum(1 for p in profiles if p.is_active)
    return {
        "total": len(profiles),
        "by_type": by_type,
        "active": active,
        "inactive": len(profiles) - active,
    }


@router.get("/export")
def export_sip_profiles(
    format: str = "json",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Выгрузка всех профилей в json, yaml или csv"""
    profiles = db.query(SipProfile).order_by(SipProfile.order, SipProfile.name).all()
    rows = []
    for profile in profiles:
        row = {field: getattr(profile, field) for field in EXPORT_FIELDS}
        row["type"] = profile.type.value
        rows.append(row)

    if format == "json":
        body = json.dumps(rows, indent=2)
        media_type = "application/json"
    elif format == "yaml":
        body = yaml.safe_dump(rows, sort_keys=False)
        media_type = "application/x-yaml"
    elif format == "csv":
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
        body = buffer.getvalue()
        media_type = "text/csv"
    else:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {format}")

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="sip-profiles.{format}"'},
    )


@router.get("/{profile_id}", response_model=SipProfileResponse)
def get_sip_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_profile_or_404(db, profile_id)


@router.put("/{profile_id}", response_model=SipProfileResponse)
def update_sip_profile(
    profile_id: int,
    profile_update: SipProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление SIP профиля"""
    profile = get_profile_or_404(db, profile_id)

    update_data = profile_update.model_dump(exclude_unset=True, exclude_none=True)
    # конфликт адреса проверяется по итоговой паре bind_ip:bind_port
    merged = {
        "name": update_data.get("name"),
        "bind_ip": update_data.get("bind_ip", profile.bind_ip),
        "bind_port": update_data.get("bind_port") or profile.bind_port,
        "domain_id": update_data.get("domain_id"),
    }
    check_conflicts(db, merged, exclude_id=profile.id)

    if update_data.get("is_default"):
        clear_default(db, exclude_id=profile.id)

    for field, value in update_data.items():
        setattr(profile, field, value)
    profile.updated_by = current_user.id

    db.commit()
    db.refresh(profile)
    return profile


@router.put("/{profile_id}/set-default", response_model=SipProfileResponse)
def set_default_sip_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    profile = get_profile_or_404(db, profile_id)

    clear_default(db, exclude_id=profile.id)
    profile.is_default = True
    profile.updated_by = current_user.id

    db.commit()
    db.refresh(profile)
    return profile


@router.delete("/{profile_id}")
def delete_sip_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление SIP профиля"""
    profile = get_profile_or_404(db, profile_id)

    gateways = db.query(Gateway).filter(Gateway.profile_id == profile.id).count()
    if gateways:
        raise HTTPException(
            status_code=409,
            detail=f"SIP profile '{profile.name}' is used by {gateways} gateway(s)",
        )

    extensions = db.query(Extension).filter(Extension.profile_id == profile.id).count()
    if extensions:
        raise HTTPException(
            status_code=409,
            detail=f"SIP profile '{profile.name}' is used by {extensions} extension(s)",
        )

    name = profile.name
    db.delete(profile)
    db.commit()

    logger.info(f"SIP profile {name} deleted by {current_user.login}")
    return {"message": f"SIP profile {name} deleted successfully"}


@router.post("/{profile_id}/reload", response_model=MessageResponse)
def reload_sip_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(require_admin),
):
    """Перезапуск профиля в FreeSWITCH"""
    profile = get_profile_or_404(db, profile_id)

    result = esl.restart_profile(profile.name)
    logger.info(f"SIP profile {profile.name} restarted by {current_user.login}")

    return {
        "success": True,
        "message": f"SIP profile '{profile.name}' reloaded successfully",
        "details": {"result": result},
    }


@router.post("/{profile_id}/test", response_model=SipProfileTestResult)
def test_sip_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(get_current_user),
):
    """Состояние профиля по данным sofia status"""
    profile = get_profile_or_404(db, profile_id)

    status = esl.profile_status(profile.name)
    return {
        "success": status["status"] == "running",
        "profile": profile.name,
        **status,
    }
