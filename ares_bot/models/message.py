"""Inbound chat messages and the classifier's output."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Priority(str, Enum):
    """Ticket urgency levels, stored verbatim in the mantenimientos table."""

    LOW = "Baja"
    MEDIUM = "Media"
    HIGH = "Alta"
    CRITICAL = "Crítica"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}


class InboundMessage(BaseModel):
    """One chat message as forwarded by the WhatsApp gateway."""

    text: str = ""
    sender_phone: str = ""
    chat_id: str = ""
    message_id: Optional[str] = None
    from_me: bool = False
    is_group: bool = False

    @field_validator("text", "sender_phone", "chat_id", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value


class ClassificationResult(BaseModel):
    """Structured reading of a chat message produced by MessageClassifier."""

    is_service_request: bool
    cliente: Optional[str] = None
    equipo_info: Optional[str] = None
    componente_info: Optional[str] = None
    problema: Optional[str] = None
    prioridad: Optional[Priority] = None
    telefono: Optional[str] = None
    matched_signals: list[str] = Field(default_factory=list, exclude=True)

    @model_validator(mode="after")
    def check_priority(self) -> "ClassificationResult":
        """A service request always carries one of the four priority levels."""
        if self.is_service_request and self.prioridad is None:
            raise ValueError("prioridad is required for service requests")
        return self

    @classmethod
    def not_a_request(cls) -> "ClassificationResult":
        return cls(is_service_request=False)
