from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from schemas.common import Pagination


class RecordingInfo(BaseModel):
    call_uuid: str
    caller_id_number: Optional[str] = None
    destination_number: Optional[str] = None
    direction: Optional[str] = None
    domain_name: Optional[str] = None
    call_created_at: Optional[datetime] = None
    duration: int = 0
    file_path: str
    file_name: str
    file_size: int = 0
    format: str
    exists: bool


class RecordingListResponse(BaseModel):
    data: list[RecordingInfo]
    pagination: Pagination


class RecordingStats(BaseModel):
    total_recordings: int
    total_size: int
    average_duration: int
    formats: dict[str, int]
