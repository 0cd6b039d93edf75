from datetime import datetime
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from esl import EslClient, get_esl
from models.user import User
from routes.auth import get_current_user, require_admin
from schemas.common import MessageResponse

router = APIRouter(tags=["system"])


@router.get("/health")
def health_check(db: Session = Depends(get_db), esl: EslClient = Depends(get_esl)):
    """Проверка доступности базы и FreeSWITCH (без авторизации)"""
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database_ok = False

    esl_ok = esl.is_connected()

    return {
        "status": "healthy" if database_ok and esl_ok else "unhealthy",
        "timestamp": datetime.utcnow(),
        "database": "connected" if database_ok else "disconnected",
        "freeswitch": "connected" if esl_ok else "disconnected",
    }


@router.get("/system/status")
def get_system_status(
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(get_current_user),
):
    """Состояние FreeSWITCH по команде status"""
    return esl.status()


@router.post("/system/reloadxml", response_model=MessageResponse)
def reload_xml(
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(require_admin),
):
    result = esl.reloadxml()
    logger.info(f"reloadxml requested by {current_user.login}")
    return {
        "success": True,
        "message": "XML configuration reloaded successfully",
        "details": {"result": result},
    }
