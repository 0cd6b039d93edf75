from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
import datetime
from database import Base


class CallDetailRecord(Base):
    __tablename__ = 'call_detail_records'

    id = Column(Integer, primary_key=True, index=True)
    call_uuid = Column(String(255), unique=True, nullable=False, index=True)
    bleg_uuid = Column(String(255), nullable=True)
    caller_id_number = Column(String(100), nullable=True, index=True)
    caller_id_name = Column(String(255), nullable=True)
    destination_number = Column(String(100), nullable=True, index=True)
    direction = Column(String(20), nullable=True, index=True)  # inbound, outbound, internal
    status = Column(String(50), nullable=True, index=True)  # answered, missed, busy, failed
    context = Column(String(100), nullable=True)
    domain_name = Column(String(255), nullable=True, index=True)
    call_created_at = Column(DateTime, nullable=True, index=True)
    call_answered_at = Column(DateTime, nullable=True)
    call_ended_at = Column(DateTime, nullable=True)
    ring_duration = Column(Integer, default=0)
    talk_duration = Column(Integer, default=0)
    total_duration = Column(Integer, default=0)
    billable_duration = Column(Integer, default=0)
    hangup_cause = Column(String(100), nullable=True)
    hangup_cause_q850 = Column(Integer, nullable=True)
    gateway_used = Column(String(255), nullable=True)
    codec_used = Column(String(50), nullable=True)
    recording_enabled = Column(Boolean, default=False)
    recording_file_path = Column(Text, nullable=True)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)
