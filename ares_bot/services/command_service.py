"""
Status commands the technician sends to the bot in a private chat.

    listo TKT-20250301-004              -> Finalizado
    proceso TKT-20250301-004            -> En proceso
    repuesto TKT-20250301-004           -> Esperando repuestos
    problema TKT-20250301-004 <motivo>  -> Pendiente + aviso a gerencia
    estado                              -> resumen de tickets abiertos
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ares_bot.models.ticket import DailyStats, TechnicianCommand, TicketStatus
from ares_bot.services.numbering_service import canonical_ticket_number
from ares_bot.services.response_service import ResponseComposer
from ares_bot.services.ticket_service import TicketService
from ares_bot.services.whatsapp_service import Notifier
from ares_bot.utils.error_handling import PersistenceError
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

_TICKET = r"#?(tkt-\d{8}-\d{3,})"
_COMMAND_PATTERNS = (
    ("listo", re.compile(rf"^listo\s+{_TICKET}\s*$", re.IGNORECASE)),
    ("proceso", re.compile(rf"^proceso\s+{_TICKET}\s*$", re.IGNORECASE)),
    ("repuesto", re.compile(rf"^repuestos?\s+{_TICKET}\s*$", re.IGNORECASE)),
    ("problema", re.compile(rf"^problema\s+{_TICKET}\s*(.*)$", re.IGNORECASE | re.DOTALL)),
    ("estado", re.compile(r"^estado\s*$", re.IGNORECASE)),
)


def parse_command(text: Optional[str]) -> Optional[TechnicianCommand]:
    """Recognize one command; anything else returns None."""
    cleaned = (text or "").strip()
    for action, pattern in _COMMAND_PATTERNS:
        match = pattern.match(cleaned)
        if not match:
            continue
        if action == "estado":
            return TechnicianCommand(action=action)
        ticket_number = canonical_ticket_number(match.group(1))
        if ticket_number is None:
            return None
        details = match.group(2).strip() if action == "problema" else None
        return TechnicianCommand(
            action=action,
            ticket_number=ticket_number,
            details=details or ("Sin detalles" if action == "problema" else None),
        )
    return None


@dataclass(frozen=True)
class _Transition:
    estado: TicketStatus
    nota: Callable[[str, Optional[str]], str]
    reply: str


class CommandService:
    """Apply technician commands and answer in the right chats."""

    def __init__(
        self,
        tickets: TicketService,
        notifier: Notifier,
        composer: ResponseComposer,
        stats_provider: Callable[[datetime], DailyStats],
    ) -> None:
        self.tickets = tickets
        self.notifier = notifier
        self.composer = composer
        self.stats_provider = stats_provider
        name = composer.technician_name
        self._transitions: Dict[str, _Transition] = {
            "listo": _Transition(
                TicketStatus.DONE,
                lambda number, _: f"Completado por {name} via WhatsApp",
                "✅ Ticket {number} marcado como completado",
            ),
            "proceso": _Transition(
                TicketStatus.IN_PROGRESS,
                lambda number, _: f"{name} está trabajando en el ticket",
                '🔧 Ticket {number} marcado como "En proceso"',
            ),
            "repuesto": _Transition(
                TicketStatus.WAITING_PARTS,
                lambda number, _: "Pausado - esperando repuestos",
                "⏸️ Ticket {number} pausado - esperando repuestos. "
                "No recibirás más recordatorios hasta que cambies el estado.",
            ),
            "problema": _Transition(
                TicketStatus.PENDING,
                lambda number, details: f"Problema reportado por {name}: {details}",
                "❌ Ticket {number} marcado con problema. Gerencia será notificada.",
            ),
        }

    def handle_text(self, text: str, now: Optional[datetime] = None) -> Optional[TechnicianCommand]:
        command = parse_command(text)
        if command is None:
            logger.debug("Unrecognized technician command", extra={"length": len(text or "")})
            return None
        self.handle(command, now=now)
        return command

    def handle(self, command: TechnicianCommand, now: Optional[datetime] = None) -> bool:
        if command.action == "estado":
            stats = self.stats_provider(now or datetime.now(timezone.utc))
            return self.notifier.to_technician(self.composer.render_status(stats))

        number = command.ticket_number
        transition = self._transitions[command.action]
        try:
            if self.tickets.find_by_number(number) is None:
                self.notifier.to_technician(f"❌ No encontré el ticket {number}")
                return False
            updated = self.tickets.update_status(number, transition.estado, transition.nota(number, command.details))
        except PersistenceError:
            updated = False

        if not updated:
            self.notifier.to_technician(f"❌ Error al actualizar ticket {number}")
            return False

        self.notifier.to_technician(transition.reply.format(number=number))
        if command.action == "listo":
            self.notifier.to_group(f"✅ Ticket {number} completado por {self.composer.technician_name}")
        elif command.action == "problema":
            self.notifier.to_manager(
                f"🚨 PROBLEMA con ticket {number}\n\n"
                f"{self.composer.technician_name} reporta: {command.details}\n\n"
                "Requiere atención de gerencia."
            )
        logger.info("Technician command applied", extra={"action": command.action, "ticket_number": number})
        return True
