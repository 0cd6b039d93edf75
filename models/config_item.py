import json
import math
from datetime import datetime
from typing import Any, Optional
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
from sqlalchemy.orm import relationship

from database import Base


DATA_TYPES = ("string", "number", "integer", "boolean", "json", "array")


def _to_int(value: Any) -> Optional[int]:
    """Целое без потери точности или None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in ("+", "-") else text
        if digits.isdecimal():
            return int(text)
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


class ConfigCategory(Base):
    __tablename__ = "config_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("ConfigItem", back_populates="category", order_by="ConfigItem.order")


class ConfigItem(Base):
    __tablename__ = "config_items"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("config_categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    value = Column(Text, nullable=True)
    default_value = Column(Text, nullable=True)
    data_type = Column(String(20), default="string")
    validation = Column(JSON, nullable=True)
    is_required = Column(Boolean, default=False)
    is_secret = Column(Boolean, default=False)
    is_read_only = Column(Boolean, default=False)
    order = Column(Integer, default=0, index=True)
    is_active = Column(Boolean, default=True, index=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)

    category = relationship("ConfigCategory", back_populates="items")

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uix_config_category_name"),
    )

    def _parse(self, raw: str) -> Any:
        if self.data_type == "boolean":
            return raw.lower() == "true"
        if self.data_type == "number":
            return float(raw)
        if self.data_type == "integer":
            return int(raw)
        if self.data_type in ("json", "array"):
            return json.loads(raw)
        return raw

    @property
    def parsed_default(self) -> Any:
        if not self.default_value:
            return None
        try:
            return self._parse(self.default_value)
        except ValueError:
            return None

    @property
    def parsed_value(self) -> Any:
        if not self.value:
            return self.parsed_default
        try:
            return self._parse(self.value)
        except ValueError:
            return self.parsed_default

    @property
    def display_value(self) -> str:
        if self.is_secret and self.value:
            return "***"
        return self.value or self.default_value or ""

    def is_valid_value(self, value: Any) -> bool:
        if value is None:
            return True

        if self.data_type == "boolean":
            return isinstance(value, bool) or str(value).lower() in ("true", "false")

        if self.data_type == "integer":
            return _to_int(value) is not None

        if self.data_type == "number":
            if isinstance(value, bool):
                return False
            try:
                return math.isfinite(float(value))
            except (TypeError, ValueError, OverflowError):
                return False

        if self.data_type in ("json", "array"):
            if isinstance(value, str):
                try:
                    value = json.loads(value)
                except ValueError:
                    return False
            return self.data_type == "json" or isinstance(value, list)

        return True

    def set_value(self, value: Any) -> None:
        if value is None:
            self.value = None
        elif self.data_type == "boolean":
            if isinstance(value, str):
                value = value.lower() == "true"
            self.value = "true" if value else "false"
        elif self.data_type == "integer":
            self.value = str(_to_int(value))
        elif self.data_type in ("json", "array") and not isinstance(value, str):
            self.value = json.dumps(value)
        else:
            self.value = str(value)
