from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from database import get_db
from models.cdr import CallDetailRecord
from models.user import User
from pagination import paginate
from routes.auth import get_current_user
from schemas.cdr import CDRListResponse, CDRRecord, CDRStats

router = APIRouter(prefix="/cdr", tags=["cdr"])


def filter_cdr(
    query: Query,
    caller: Optional[str] = None,
    destination: Optional[str] = None,
    direction: Optional[str] = None,
    status: Optional[str] = None,
    domain_name: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Query:
    """Общие фильтры истории звонков (используются и для записей разговоров)"""
    if caller:
        query = query.filter(
            or_(
                CallDetailRecord.caller_id_number.ilike(f"%{caller}%"),
                CallDetailRecord.caller_id_name.ilike(f"%{caller}%"),
            )
        )
    if destination:
        query = query.filter(CallDetailRecord.destination_number.ilike(f"%{destination}%"))
    if direction:
        query = query.filter(CallDetailRecord.direction == direction)
    if status:
        query = query.filter(CallDetailRecord.status == status)
    if domain_name:
        query = query.filter(CallDetailRecord.domain_name == domain_name)
    if start_date:
        query = query.filter(CallDetailRecord.call_created_at >= start_date)
    if end_date:
        query = query.filter(CallDetailRecord.call_created_at <= end_date)
    return query


@router.get("", response_model=CDRListResponse)
def get_cdr_history(
    caller: Optional[str] = None,
    destination: Optional[str] = None,
    direction: Optional[str] = None,
    status: Optional[str] = None,
    domain_name: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Получение истории звонков с фильтрацией"""
    query = filter_cdr(
        db.query(CallDetailRecord),
        caller,
        destination,
        direction,
        status,
        domain_name,
        start_date,
        end_date,
    )
    query = query.order_by(
        CallDetailRecord.call_created_at.desc(), CallDetailRecord.id.desc()
    )
    return paginate(query, page, limit)


@router.get("/stats", response_model=CDRStats)
def get_call_stats(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Получение статистики звонков"""
    base = filter_cdr(
        db.query(CallDetailRecord), start_date=start_date, end_date=end_date
    )

    total_calls, total_duration, total_billable = base.with_entities(
        func.count(CallDetailRecord.id),
        func.coalesce(func.sum(CallDetailRecord.total_duration), 0),
        func.coalesce(func.sum(CallDetailRecord.billable_duration), 0),
    ).one()
    answered_calls = base.filter(CallDetailRecord.call_answered_at.isnot(None)).count()

    return {
        "total_calls": total_calls,
        "answered_calls": answered_calls,
        "missed_calls": total_calls - answered_calls,
        "answer_rate": round(answered_calls / total_calls * 100, 2) if total_calls else 0,
        "total_duration": total_duration,
        "total_billable_duration": total_billable,
        "average_duration": round(total_duration / total_calls) if total_calls else 0,
        "start_date": start_date,
        "end_date": end_date,
    }


@router.get("/{call_uuid}", response_model=CDRRecord)
def get_cdr_record(
    call_uuid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    record = (
        db.query(CallDetailRecord).filter(CallDetailRecord.call_uuid == call_uuid).first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="CDR record not found")
    return record
