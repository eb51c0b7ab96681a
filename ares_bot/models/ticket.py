"""Ticket models shared by the repository, the composer and the handlers."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ares_bot.models.message import Priority


class TicketStatus(str, Enum):
    """Workflow states of a maintenance ticket."""

    PENDING = "Pendiente"
    IN_PROGRESS = "En proceso"
    WAITING_PARTS = "Esperando repuestos"
    DONE = "Finalizado"


OPEN_STATUSES = (TicketStatus.PENDING, TicketStatus.IN_PROGRESS)


class TicketDraft(BaseModel):
    """
    Fields the response templates read.

    Everything is optional so a half-filled ticket still renders with
    placeholders instead of blocking the notification.
    """

    ticket_number: Optional[str] = None
    cliente: Optional[str] = None
    problema: Optional[str] = None
    prioridad: Optional[Priority] = None
    telefono: Optional[str] = None
    equipo_info: Optional[str] = None
    componente_info: Optional[str] = None


class Ticket(BaseModel):
    """A persisted row of the mantenimientos table."""

    id: str
    ticket_number: str
    descripcion: str
    prioridad: Priority
    estado: TicketStatus = TicketStatus.PENDING
    tecnico_asignado: Optional[str] = None
    cliente: Optional[str] = None
    telefono: Optional[str] = None
    equipo_id: Optional[str] = None
    equipo_info: Optional[str] = None
    componente_info: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    def hours_since_update(self, now: datetime) -> int:
        last = self.updated_at or self.created_at
        return max(int((now - last).total_seconds() // 3600), 0)

    def to_draft(self) -> TicketDraft:
        return TicketDraft(
            ticket_number=self.ticket_number,
            cliente=self.cliente,
            problema=self.descripcion,
            prioridad=self.prioridad,
            telefono=self.telefono,
            equipo_info=self.equipo_info,
            componente_info=self.componente_info,
        )


class EquipmentMatch(BaseModel):
    """Row of the equipos table matched from a message hint."""

    id: str
    cliente: str
    nombre: Optional[str] = None


class DailyStats(BaseModel):
    """Counters for the daily report and the technician's `estado` command."""

    completados: int = 0
    pendientes: int = 0
    en_proceso: int = 0
    esperando_repuestos: int = 0
    criticos: int = 0
    vencidos: int = 0


class TechnicianCommand(BaseModel):
    """A status command sent privately by the technician."""

    action: str = Field(pattern="^(listo|proceso|repuesto|problema|estado)$")
    ticket_number: Optional[str] = None
    details: Optional[str] = None
