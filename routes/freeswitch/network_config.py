from copy import deepcopy
from datetime import datetime
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from config import config
from database import get_db
from esl import EslClient, EslError, get_esl
from models.network_config import (
    FACTORY_DEFAULTS,
    IPV4_RE,
    GlobalNetworkConfig,
    NetworkConfigStatus,
)
from models.user import User
from routes.auth import get_current_user, require_admin, require_superadmin
from schemas.common import ValidationResult
from schemas.network_config import (
    ApplyResult,
    IpDetectionResult,
    NetworkConfigResponse,
    NetworkConfigStatusResponse,
    NetworkConfigUpdate,
)

router = APIRouter(prefix="/freeswitch/network-config", tags=["network-config"])


def get_or_create_config(db: Session) -> GlobalNetworkConfig:
    """Единственная глобальная конфигурация, создается при первом обращении"""
    network_config = (
        db.query(GlobalNetworkConfig)
        .filter(GlobalNetworkConfig.is_default.is_(True), GlobalNetworkConfig.is_active.is_(True))
        .first()
    )
    if network_config:
        return network_config

    network_config = GlobalNetworkConfig(
        config_name="default",
        display_name="Default Network Configuration",
        description="Default global network configuration for FreeSWITCH",
        is_default=True,
        is_active=True,
        status=NetworkConfigStatus.ACTIVE,
        **deepcopy(FACTORY_DEFAULTS),
    )
    db.add(network_config)
    db.commit()
    db.refresh(network_config)

    logger.info("Created default global network configuration")
    return network_config


def merged_copy(network_config: GlobalNetworkConfig, changes: dict) -> GlobalNetworkConfig:
    # не привязан к сессии, используется только для проверки
    values = {field: getattr(network_config, field) for field in FACTORY_DEFAULTS}
    values.update(changes)
    return GlobalNetworkConfig(**values)


def validation_result(network_config: GlobalNetworkConfig) -> dict:
    errors, warnings = network_config.validate()
    return {"is_valid": not errors, "errors": errors, "warnings": warnings}


def apply_config(
    db: Session, network_config: GlobalNetworkConfig, esl: EslClient, user: User
) -> dict:
    errors, warnings = network_config.validate()
    if errors:
        raise HTTPException(
            status_code=400,
            detail={"message": "Cannot apply invalid configuration", "errors": errors},
        )

    try:
        esl.reloadxml()
    except EslError as e:
        logger.error(f"Failed to apply network configuration: {e}")
        network_config.status = NetworkConfigStatus.ERROR
        db.commit()
        return {
            "success": False,
            "message": "Failed to apply network configuration",
            "errors": [str(e)],
            "warnings": warnings,
        }

    network_config.status = NetworkConfigStatus.ACTIVE
    network_config.last_applied_at = datetime.utcnow()
    network_config.last_applied_by = user.login
    db.commit()

    logger.info(f"Network configuration applied by {user.login}")
    return {
        "success": True,
        "message": "Network configuration applied successfully",
        "warnings": warnings,
        "applied_at": network_config.last_applied_at,
    }


def detect_public_ip() -> Optional[str]:
    with httpx.Client(timeout=config.IP_DETECTION_TIMEOUT) as client:
        response = client.get(config.IP_DETECTION_URL)
        response.raise_for_status()
    ip = response.text.strip()
    return ip if IPV4_RE.match(ip) else None


@router.get("", response_model=NetworkConfigResponse)
def get_network_config(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return get_or_create_config(db)


@router.put("", response_model=NetworkConfigResponse)
def update_network_config(
    config_update: NetworkConfigUpdate,
    db: Session = Depends(get_db),
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(require_admin),
):
    """Обновление сетевой конфигурации"""
    network_config = get_or_create_config(db)
    update_data = config_update.model_dump(exclude_unset=True, exclude_none=True)

    errors, _ = merged_copy(network_config, update_data).validate()
    if errors:
        raise HTTPException(
            status_code=400,
            detail={"message": "Configuration validation failed", "errors": errors},
        )

    for field, value in update_data.items():
        setattr(network_config, field, value)
    network_config.status = NetworkConfigStatus.PENDING
    network_config.updated_by = current_user.login
    db.commit()
    db.refresh(network_config)

    if network_config.auto_apply:
        apply_config(db, network_config, esl, current_user)
        db.refresh(network_config)

    return network_config


@router.post("/validate", response_model=ValidationResult)
def validate_network_config(
    config_update: NetworkConfigUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Проверка значений без сохранения"""
    network_config = get_or_create_config(db)
    changes = config_update.model_dump(exclude_unset=True, exclude_none=True)
    return validation_result(merged_copy(network_config, changes))


@router.post("/apply", response_model=ApplyResult)
def apply_network_config(
    db: Session = Depends(get_db),
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(require_admin),
):
    return apply_config(db, get_or_create_config(db), esl, current_user)


@router.post("/detect-ip", response_model=IpDetectionResult)
def detect_external_ip(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Определение внешнего IP. STUN не поддерживается, используется HTTP-сервис"""
    network_config = get_or_create_config(db)
    if network_config.stun_enabled:
        logger.debug("STUN detection is not supported, falling back to HTTP")

    try:
        ip = detect_public_ip()
    except httpx.HTTPError as e:
        logger.warning(f"HTTP IP detection failed: {e}")
        return {
            "detected_ip": None,
            "method": "manual",
            "success": False,
            "error": f"Failed to detect external IP: {e}",
        }

    if ip is None:
        return {
            "detected_ip": None,
            "method": "manual",
            "success": False,
            "error": "IP detection service returned an invalid address",
        }

    return {"detected_ip": ip, "method": "http", "success": True}


@router.get("/status", response_model=NetworkConfigStatusResponse)
def get_network_config_status(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    network_config = get_or_create_config(db)
    return {
        "id": network_config.id,
        "status": network_config.status,
        "last_applied_at": network_config.last_applied_at,
        "last_applied_by": network_config.last_applied_by,
        **validation_result(network_config),
    }


@router.post("/reset-to-default", response_model=NetworkConfigResponse)
def reset_network_config(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_superadmin),
):
    """Сброс к заводским значениям"""
    network_config = get_or_create_config(db)

    for field, value in deepcopy(FACTORY_DEFAULTS).items():
        setattr(network_config, field, value)
    network_config.status = NetworkConfigStatus.PENDING
    network_config.updated_by = current_user.login
    db.commit()
    db.refresh(network_config)

    logger.warning(f"Network configuration reset to defaults by {current_user.login}")
    return network_config
