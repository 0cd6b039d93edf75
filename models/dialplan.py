import re
from datetime import datetime
from typing import Any
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from database import Base


def validate_dialplan(data: dict[str, Any]) -> list[str]:
    """Ошибки правила маршрутизации, пустой список если все в порядке"""
    errors = []

    if not data.get("name"):
        errors.append("Name is required")
    if not data.get("context"):
        errors.append("Context is required")

    actions = data.get("actions") or []
    if not actions:
        errors.append("At least one action is required")

    expression = data.get("condition_expression")
    if expression:
        try:
            re.compile(expression)
        except re.error:
            errors.append("Invalid regular expression in condition")

    for index, action in enumerate(actions, start=1):
        if not isinstance(action, dict) or not action.get("application"):
            errors.append(f"Action {index}: Application is required")

    return errors


class Dialplan(Base):
    __tablename__ = "freeswitch_dialplans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    context = Column(String(100), nullable=False, default="default", index=True)
    domain_id = Column(Integer, ForeignKey("freeswitch_domains.id"), nullable=True, index=True)
    extension_pattern = Column(String(255), nullable=True)
    condition_field = Column(String(100), nullable=False, default="destination_number")
    condition_expression = Column(Text, nullable=True)
    # [{"application": "bridge", "data": "...", "inline": false}]
    actions = Column(JSON, default=list)
    anti_actions = Column(JSON, default=list)
    variables = Column(JSON, default=dict)
    priority = Column(Integer, default=0, index=True)
    is_active = Column(Boolean, default=True, index=True)
    is_template = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "context", name="uix_dialplan_name_context"),
    )

    # поля, которые копируются из шаблона
    COPY_FIELDS = (
        "display_name",
        "description",
        "context",
        "domain_id",
        "extension_pattern",
        "condition_field",
        "condition_expression",
        "actions",
        "anti_actions",
        "variables",
        "priority",
        "is_active",
    )

    def as_template_data(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in self.COPY_FIELDS}
