import os
from collections import Counter
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from loguru import logger
from sqlalchemy.orm import Session

from config import config
from database import get_db
from models.cdr import CallDetailRecord
from models.user import User
from pagination import paginate
from routes.auth import get_current_user, require_admin
from routes.cdr import filter_cdr
from schemas.recording import RecordingInfo, RecordingListResponse, RecordingStats

router = APIRouter(prefix="/recordings", tags=["recordings"])

MEDIA_TYPES = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "opus": "audio/opus",
}


def resolve_path(file_path: str) -> str:
    if os.path.isabs(file_path):
        return file_path
    return os.path.join(config.RECORDINGS_PATH, file_path)


def recording_info(record: CallDetailRecord) -> dict:
    path = resolve_path(record.recording_file_path)
    exists = os.path.isfile(path)
    ext = os.path.splitext(path)[1].lstrip(".").lower()

    return {
        "call_uuid": record.call_uuid,
        "caller_id_number": record.caller_id_number,
        "destination_number": record.destination_number,
        "direction": record.direction,
        "domain_name": record.domain_name,
        "call_created_at": record.call_created_at,
        "duration": record.total_duration or 0,
        "file_path": path,
        "file_name": os.path.basename(path),
        "file_size": os.path.getsize(path) if exists else 0,
        "format": ext or "unknown",
        "exists": exists,
    }


def recordings_query(db: Session):
    return db.query(CallDetailRecord).filter(
        CallDetailRecord.recording_enabled.is_(True),
        CallDetailRecord.recording_file_path.isnot(None),
        CallDetailRecord.recording_file_path != "",
    )


def get_recording_or_404(db: Session, call_uuid: str) -> CallDetailRecord:
    record = (
        recordings_query(db).filter(CallDetailRecord.call_uuid == call_uuid).first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Recording not found")
    return record


@router.get("", response_model=RecordingListResponse)
def list_recordings(
    caller: Optional[str] = None,
    destination: Optional[str] = None,
    direction: Optional[str] = None,
    domain_name: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Записи разговоров (звонки с включенной записью)"""
    query = filter_cdr(
        recordings_query(db),
        caller=caller,
        destination=destination,
        direction=direction,
        domain_name=domain_name,
        start_date=start_date,
        end_date=end_date,
    ).order_by(CallDetailRecord.call_created_at.desc(), CallDetailRecord.id.desc())
    return paginate(query, page, limit, serialize=recording_info)


@router.get("/stats", response_model=RecordingStats)
def get_recording_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    recordings = [recording_info(r) for r in recordings_query(db).all()]
    total = len(recordings)

    return {
        "total_recordings": total,
        "total_size": sum(r["file_size"] for r in recordings),
        "average_duration": round(sum(r["duration"] for r in recordings) / total)
        if total
        else 0,
        "formats": dict(Counter(r["format"] for r in recordings)),
    }


@router.get("/{call_uuid}/info", response_model=RecordingInfo)
def get_recording_info(
    call_uuid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return recording_info(get_recording_or_404(db, call_uuid))


@router.get("/{call_uuid}/download")
def download_recording(
    call_uuid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    info = recording_info(get_recording_or_404(db, call_uuid))
    if not info["exists"]:
        raise HTTPException(status_code=404, detail="Recording file not found")

    return FileResponse(
        info["file_path"],
        media_type=MEDIA_TYPES.get(info["format"], "application/octet-stream"),
        filename=info["file_name"],
    )


@router.delete("/{call_uuid}")
def delete_recording(
    call_uuid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Удаление файла записи и очистка полей записи в CDR"""
    record = get_recording_or_404(db, call_uuid)
    path = resolve_path(record.recording_file_path)

    if os.path.isfile(path):
        os.remove(path)
    else:
        logger.warning(f"Recording file {path} is already missing")

    record.recording_enabled = False
    record.recording_file_path = None
    db.commit()

    logger.info(f"Recording of call {call_uuid} deleted by {current_user.login}")
    return {"message": f"Recording for call {call_uuid} deleted successfully"}
