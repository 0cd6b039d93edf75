from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from schemas.common import Pagination


class CDRRecord(BaseModel):
    id: int
    call_uuid: str
    bleg_uuid: Optional[str] = None
    caller_id_number: Optional[str] = None
    caller_id_name: Optional[str] = None
    destination_number: Optional[str] = None
    direction: Optional[str] = None
    status: Optional[str] = None
    context: Optional[str] = None
    domain_name: Optional[str] = None
    call_created_at: Optional[datetime] = None
    call_answered_at: Optional[datetime] = None
    call_ended_at: Optional[datetime] = None
    ring_duration: int = 0
    talk_duration: int = 0
    total_duration: int = 0
    billable_duration: int = 0
    hangup_cause: Optional[str] = None
    hangup_cause_q850: Optional[int] = None
    gateway_used: Optional[str] = None
    codec_used: Optional[str] = None
    recording_enabled: bool = False
    recording_file_path: Optional[str] = None

    class Config:
        from_attributes = True


class CDRListResponse(BaseModel):
    data: list[CDRRecord]
    pagination: Pagination


class CDRStats(BaseModel):
    total_calls: int
    answered_calls: int
    missed_calls: int
    answer_rate: float
    total_duration: int
    total_billable_duration: int
    average_duration: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
