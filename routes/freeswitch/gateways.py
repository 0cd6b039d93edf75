from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from esl import EslClient, EslError, get_esl
from models.gateway import Gateway
from models.sip_profile import SipProfile
from models.user import User
from pagination import apply_sorting, paginate
from routes.auth import get_current_user, require_admin
from schemas.gateway import (
    GatewayCreate,
    GatewayListResponse,
    GatewayOrderItem,
    GatewayResponse,
    GatewayStats,
    GatewayTestResult,
    GatewayUpdate,
)

router = APIRouter(prefix="/freeswitch/gateways", tags=["gateways"])

SORT_FIELDS = ("name", "gateway_host", "order", "created_at", "updated_at")


def get_gateway_or_404(db: Session, gateway_id: int) -> Gateway:
    gateway = db.query(Gateway).filter(Gateway.id == gateway_id).first()
    if not gateway:
        raise HTTPException(status_code=404, detail="Gateway not found")
    return gateway


def check_profile_exists(db: Session, profile_id: int):
    if not db.query(SipProfile).filter(SipProfile.id == profile_id).first():
        raise HTTPException(status_code=404, detail="SIP profile not found")


def check_name_free(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(Gateway).filter(Gateway.name == name)
    if exclude_id is not None:
        query = query.filter(Gateway.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=409, detail=f"Gateway with name '{name}' already exists"
        )


@router.post("", response_model=GatewayResponse, status_code=201)
def create_gateway(
    gateway_data: GatewayCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Создание шлюза (SIP транка)"""
    check_name_free(db, gateway_data.name)
    check_profile_exists(db, gateway_data.profile_id)

    gateway = Gateway(**gateway_data.model_dump(by_alias=True), created_by=current_user.id)
    db.add(gateway)
    db.commit()
    db.refresh(gateway)

    logger.info(f"Gateway {gateway.name} created by {current_user.login}")
    return gateway


@router.get("", response_model=GatewayListResponse)
def list_gateways(
    search: Optional[str] = None,
    profile_id: Optional[int] = None,
    domain_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "order",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Список шлюзов с фильтрацией и пагинацией"""
    query = db.query(Gateway)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Gateway.name.ilike(pattern),
                Gateway.display_name.ilike(pattern),
                Gateway.description.ilike(pattern),
                Gateway.gateway_host.ilike(pattern),
            )
        )
    if profile_id is not None:
        query = query.filter(Gateway.profile_id == profile_id)
    if domain_id is not None:
        query = query.filter(Gateway.domain_id == domain_id)
    if is_active is not None:
        query = query.filter(Gateway.is_active == is_active)

    query = apply_sorting(query, Gateway, sort_by, sort_order, SORT_FIELDS, "order")
    return paginate(query, page, limit)


@router.get("/stats", response_model=GatewayStats)
def get_gateway_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    gateways = db.query(Gateway).all()

    by_profile: dict[str, int] = {}
    for gateway in gateways:
        name = gateway.profile.name if gateway.profile else "unknown"
        by_profile[name] = by_profile.get(name, 0) + 1

    active = sum(1 for g in gateways if g.is_active)
    return {
        "total": len(gateways),
        "active": active,
        "inactive": len(gateways) - active,
        "registered": sum(1 for g in gateways if g.is_registered),
        "by_profile": by_profile,
    }


@router.get("/by-profile/{profile_id}", response_model=list[GatewayResponse])
def get_gateways_by_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Активные шлюзы профиля в порядке order"""
    return (
        db.query(Gateway)
        .filter(Gateway.profile_id == profile_id, Gateway.is_active.is_(True))
        .order_by(Gateway.order, Gateway.name)
        .all()
    )


@router.put("/bulk-order")
def update_gateway_order(
    items: list[GatewayOrderItem],
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Массовое изменение порядка шлюзов"""
    gateways = {
        g.id: g
        for g in db.query(Gateway).filter(Gateway.id.in_([i.id for i in items])).all()
    }
    missing = [i.id for i in items if i.id not in gateways]
    if missing:
        raise HTTPException(status_code=404, detail=f"Gateways not found: {missing}")

    for item in items:
        gateways[item.id].order = item.order
        gateways[item.id].updated_by = current_user.id

    db.commit()
    return {"message": f"Order updated for {len(items)} gateway(s)"}


@router.get("/{gateway_id}", response_model=GatewayResponse)
def get_gateway(
    gateway_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_gateway_or_404(db, gateway_id)


@router.put("/{gateway_id}", response_model=GatewayResponse)
def update_gateway(
    gateway_id: int,
    gateway_update: GatewayUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Обновление шлюза"""
    gateway = get_gateway_or_404(db, gateway_id)

    # поле register в схеме называется register_enabled
    update_data = gateway_update.model_dump(
        exclude_unset=True, exclude_none=True, by_alias=True
    )
    if update_data.get("name"):
        check_name_free(db, update_data["name"], exclude_id=gateway.id)
    if update_data.get("profile_id") is not None:
        check_profile_exists(db, update_data["profile_id"])

    for field, value in update_data.items():
        setattr(gateway, field, value)
    gateway.updated_by = current_user.id

    db.commit()
    db.refresh(gateway)
    return gateway


@router.delete("/{gateway_id}")
def delete_gateway(
    gateway_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление шлюза"""
    gateway = get_gateway_or_404(db, gateway_id)

    name = gateway.name
    db.delete(gateway)
    db.commit()

    logger.info(f"Gateway {name} deleted by {current_user.login}")
    return {"message": f"Gateway {name} deleted successfully"}


@router.post("/{gateway_id}/test-connection", response_model=GatewayTestResult)
def test_gateway_connection(
    gateway_id: int,
    db: Session = Depends(get_db),
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(get_current_user),
):
    """Проверка настроек шлюза и его регистрации в FreeSWITCH"""
    gateway = get_gateway_or_404(db, gateway_id)

    errors = []
    if not gateway.gateway_host:
        errors.append("Gateway host is required")
    if gateway.register and not gateway.username:
        errors.append("Username is required for registration")
    if gateway.register and not gateway.password:
        errors.append("Password is required for registration")

    registration = None
    message = "Gateway configuration is valid" if not errors else "Gateway configuration is invalid"
    try:
        registration = esl.gateway_status(gateway.name)
    except EslError as e:
        # без FreeSWITCH проверяем только конфигурацию
        message += f"; registration state unavailable: {e}"

    return {
        "success": not errors,
        "gateway": gateway.name,
        "connection_string": gateway.connection_string,
        "errors": errors,
        "registration": registration,
        "message": message,
    }
