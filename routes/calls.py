from fastapi import APIRouter, Depends
from loguru import logger

from esl import EslClient, get_esl
from models.user import User
from routes.auth import get_current_user, require_admin

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("/active")
def get_active_calls(
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(get_current_user),
):
    """Получение списка активных звонков"""
    calls = esl.active_calls()
    return {"total": len(calls), "calls": calls}


@router.post("/{uuid}/hangup")
def hangup_call(
    uuid: str,
    cause: str = "NORMAL_CLEARING",
    esl: EslClient = Depends(get_esl),
    current_user: User = Depends(require_admin),
):
    """Принудительное завершение звонка"""
    result = esl.hangup(uuid, cause)
    logger.info(f"Call {uuid} hung up by {current_user.login} ({cause})")
    return {"success": True, "message": f"Call {uuid} terminated", "details": {"result": result}}
