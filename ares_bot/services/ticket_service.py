"""Ticket creation and status changes on top of TicketRepository."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from ares_bot.models.message import ClassificationResult
from ares_bot.models.ticket import EquipmentMatch, Ticket, TicketDraft, TicketStatus
from ares_bot.repositories.ticket_repo import TicketRepository
from ares_bot.utils.cache_service import LRUCache
from ares_bot.utils.error_handling import PersistenceError, ValidationError
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Translate database failures into PersistenceError."""
    try:
        yield
    except (SQLAlchemyError, RuntimeError) as exc:
        logger.error("Ticket storage failed", extra={"action": action, "error": str(exc)})
        raise PersistenceError(f"Could not {action}") from exc


class TicketService:
    """Turn classification results into stored tickets."""

    def __init__(
        self,
        repository: TicketRepository,
        technician_name: str,
        tz: str = "America/Asuncion",
        equipment_cache: Optional[LRUCache] = None,
    ) -> None:
        self.repository = repository
        self.technician_name = technician_name
        self.tz = ZoneInfo(tz)
        self.equipment_cache = equipment_cache or LRUCache(max_size=128, ttl_seconds=300)

    def create_ticket(self, result: ClassificationResult, now: Optional[datetime] = None) -> Ticket:
        """
        Store a ticket for a service request.

        The ticket number is dated in local (Paraguay) time. When the detected
        equipment is found in the equipos table, its registered owner replaces
        the client guessed from the message.
        """
        if not result.is_service_request:
            raise ValidationError("Only service requests become tickets")

        now = now or datetime.now(timezone.utc)
        day = now.astimezone(self.tz).date()

        with _storage_errors("create ticket"):
            match = self._resolve_equipment(result.equipo_info, result.cliente)
            draft = TicketDraft(
                cliente=(match.cliente if match and match.cliente else result.cliente),
                problema=result.problema,
                prioridad=result.prioridad,
                telefono=result.telefono,
                equipo_info=result.equipo_info,
                componente_info=result.componente_info,
            )
            ticket = self.repository.create(
                draft,
                day=day,
                tecnico=self.technician_name,
                equipo_id=match.id if match else None,
            )

        logger.info(
            "Ticket created",
            extra={
                "ticket_number": ticket.ticket_number,
                "prioridad": ticket.prioridad.value,
                "equipo_id": ticket.equipo_id,
            },
        )
        return ticket

    def _resolve_equipment(self, equipo_info: Optional[str], cliente: Optional[str]) -> Optional[EquipmentMatch]:
        if not equipo_info:
            return None
        cache_key = f"{equipo_info.lower()}|{(cliente or '').lower()}"
        cached = self.equipment_cache.get(cache_key)
        if cached:
            return cached
        match = self.repository.find_equipment(equipo_info, cliente)
        if match:
            self.equipment_cache.set(cache_key, match)
        return match

    def find_by_number(self, ticket_number: str) -> Optional[Ticket]:
        with _storage_errors("load ticket"):
            return self.repository.find_by_number(ticket_number)

    def update_status(self, ticket_number: str, estado: TicketStatus, nota: Optional[str] = None) -> bool:
        with _storage_errors("update ticket"):
            updated = self.repository.update_status(ticket_number, estado, nota)
        logger.info(
            "Ticket status update",
            extra={"ticket_number": ticket_number, "estado": estado.value, "updated": updated},
        )
        return updated
