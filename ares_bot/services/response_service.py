"""
Chat message templates for tickets, reminders and reports.

Every renderer is a pure function of its arguments. Missing fields render
as ``No especificado`` so a half-filled ticket never blocks a notification.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Union

from ares_bot.models.message import ClassificationResult, Priority
from ares_bot.models.ticket import DailyStats, Ticket, TicketDraft
from ares_bot.utils.text import truncate

PLACEHOLDER = "No especificado"
PREVIEW_LENGTH = 50

PRIORITY_EMOJI = {
    Priority.CRITICAL.value: "🚨",
    Priority.HIGH.value: "⚠️",
    Priority.MEDIUM.value: "🔧",
    Priority.LOW.value: "📝",
}

TicketLike = Union[TicketDraft, Ticket, ClassificationResult, Mapping[str, Any]]

# Alternative keys accepted from rows and camelCase payloads.
_FALLBACK_KEYS = {
    "problema": ("descripcion",),
    "equipo_info": ("equipoInfo",),
    "componente_info": ("componenteInfo",),
}


def _field(ticket: Optional[TicketLike], name: str) -> Optional[str]:
    if ticket is None:
        return None
    for key in (name, *_FALLBACK_KEYS.get(name, ())):
        if isinstance(ticket, Mapping):
            value = ticket.get(key)
        else:
            value = getattr(ticket, key, None)
        if isinstance(value, Enum):
            value = value.value
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _or_placeholder(value: Optional[str]) -> str:
    return value if value else PLACEHOLDER


class ResponseComposer:
    """Render the group acknowledgment, the technician notification and friends."""

    def __init__(self, technician_name: str = "Javier Lopez", include_phone_in_group: bool = True):
        self.technician_name = technician_name
        self.include_phone_in_group = include_phone_in_group

    def render_group_response(self, ticket_number: Optional[str], ticket: Optional[TicketLike]) -> str:
        """Short acknowledgment posted back to the service group."""
        prioridad = _field(ticket, "prioridad")
        lines = [
            f"✅ Ticket {_or_placeholder(ticket_number)} creado",
            "",
            f"🏢 Cliente: {_or_placeholder(_field(ticket, 'cliente'))}",
            f"🔧 Equipo: {_or_placeholder(_field(ticket, 'equipo_info'))}",
            f"{PRIORITY_EMOJI.get(prioridad, '📌')} Prioridad: {_or_placeholder(prioridad)}",
        ]
        if self.include_phone_in_group:
            lines.append(f"📱 Contacto: {_or_placeholder(_field(ticket, 'telefono'))}")
        lines += [
            f"👨‍🔧 Técnico: {self.technician_name}",
            "",
            f"{self.technician_name} será notificado automáticamente.",
        ]
        return "\n".join(lines)

    def render_technician_notification(self, ticket_number: Optional[str], ticket: Optional[TicketLike]) -> str:
        """Detailed private message with everything the technician needs to act."""
        number = _or_placeholder(ticket_number)
        prioridad = _field(ticket, "prioridad")
        critical = prioridad == Priority.CRITICAL.value
        lines = [
            f"{'🚨 URGENTE - ' if critical else ''}Nuevo ticket {number}",
            "",
            f"🏢 Cliente: {_or_placeholder(_field(ticket, 'cliente'))}",
            f"🔧 Equipo: {_or_placeholder(_field(ticket, 'equipo_info'))}",
        ]
        componente = _field(ticket, "componente_info")
        if componente:
            lines.append(f"🔩 Componente: {componente}")
        lines += [
            f"📱 Teléfono: {_or_placeholder(_field(ticket, 'telefono'))}",
            f"⚠️ Prioridad: {_or_placeholder(prioridad)}",
            "",
            f"📝 Problema: {_or_placeholder(_field(ticket, 'problema'))}",
            "",
            "⚡ Requiere atención inmediata." if critical else "✅ Responde cuando puedas atender.",
            "",
            "Responde:",
            f'✅ "Listo {number}" - Completado',
            f'🔧 "Proceso {number}" - En proceso',
            f'⏸️ "Repuesto {number}" - Esperando repuestos',
            f'❌ "Problema {number} [motivo]" - Hay inconveniente',
        ]
        return "\n".join(lines)

    def render_manager_alert(self, ticket_number: Optional[str], ticket: Optional[TicketLike]) -> str:
        return "\n".join(
            [
                "🚨 TICKET CRÍTICO CREADO:",
                "",
                f"🎫 {_or_placeholder(ticket_number)}",
                f"🏢 Cliente: {_or_placeholder(_field(ticket, 'cliente'))}",
                f"🔧 Problema: {_or_placeholder(_field(ticket, 'problema'))}",
                "",
                f"{self.technician_name} ha sido notificado automáticamente.",
            ]
        )

    def render_creation_failure(self) -> str:
        return "❌ Error: No se pudo crear el ticket automáticamente. Por favor, crear manualmente."

    def render_reminder(self, ticket: Ticket, hours_since_update: int) -> str:
        number = ticket.ticket_number
        critical = ticket.prioridad == Priority.CRITICAL
        lines = [
            f"{'🚨' if critical else '⏰'} Recordatorio {number}",
            "",
            f"🏢 Cliente: {_or_placeholder(ticket.cliente)}",
            f"📝 Problema: {truncate(ticket.descripcion, PREVIEW_LENGTH) or PLACEHOLDER}",
            f"⚠️ Estado: {ticket.estado.value} ({hours_since_update}h sin actualizar)",
        ]
        if ticket.telefono:
            lines.append(f"📱 Teléfono: {ticket.telefono}")
        lines += [
            "",
            "🚨 CRÍTICO - Requiere atención inmediata" if critical else "📋 Pendiente de atención",
            "",
            f'Responde "Listo {number}", "Proceso {number}" o "Repuesto {number}".',
        ]
        return "\n".join(lines)

    def render_group_escalation(self, ticket: Ticket, hours_since_update: int) -> str:
        return "\n".join(
            [
                f"🚨 ATENCIÓN: Ticket crítico {ticket.ticket_number} lleva {hours_since_update}h sin actualizar",
                "",
                f"🏢 Cliente: {_or_placeholder(ticket.cliente)}",
                f"👨‍🔧 @{self.technician_name} ¿necesitas apoyo con este caso?",
            ]
        )

    def render_daily_report(self, stats: DailyStats) -> str:
        lines = [
            "📊 REPORTE DIARIO ServTec:",
            "",
            f"✅ Completados hoy: {stats.completados}",
            f"⏳ Pendientes: {stats.pendientes}",
            f"🔧 En proceso: {stats.en_proceso}",
            f"⏸️ Esperando repuestos: {stats.esperando_repuestos}",
            f"🚨 Críticos sin atender: {stats.criticos}",
            f"⚠️ Vencidos (+24h): {stats.vencidos}",
        ]
        if stats.vencidos:
            lines += ["", f"🔥 ATENCIÓN: {stats.vencidos} tickets vencidos requieren seguimiento urgente"]
        if stats.criticos:
            lines += ["", f"🚨 HAY {stats.criticos} TICKETS CRÍTICOS PENDIENTES"]
        return "\n".join(lines)

    def render_status(self, stats: DailyStats) -> str:
        return "\n".join(
            [
                "📊 Tu estado actual:",
                "",
                f"⏳ Pendientes: {stats.pendientes}",
                f"🔧 En proceso: {stats.en_proceso}",
                f"⏸️ Esperando repuestos: {stats.esperando_repuestos}",
                f"🚨 Críticos: {stats.criticos}",
                "",
                "⚡ Hay tickets críticos que requieren atención" if stats.criticos else "✅ Todo bajo control",
            ]
        )

    def render_report_caption(self, ticket_number: str, cliente: Optional[str]) -> str:
        return f"📄 Reporte de servicio {ticket_number} - {_or_placeholder(cliente)}\nARES Paraguay - Servicio Técnico"
