"""
Ticket persistence on the company's mantenimientos table.

WhatsApp tickets become corrective maintenance rows. The reporter's phone,
the client and the detected equipment are kept in ``comentarios`` because
the shared schema has no dedicated columns for them.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ares_bot.models.message import Priority
from ares_bot.models.ticket import (
    OPEN_STATUSES,
    DailyStats,
    EquipmentMatch,
    Ticket,
    TicketDraft,
    TicketStatus,
)
from ares_bot.repositories.postgres_repo import PostgresRepository
from ares_bot.services.numbering_service import format_ticket_number
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

_TICKET_COLUMNS = (
    "id, numero_reporte, descripcion, prioridad, estado, tecnico_asignado, "
    "equipo_id, comentarios, created_at, updated_at"
)

_COMMENT_FIELDS = {
    "telefono": "Tel",
    "cliente": "Cliente",
    "equipo_info": "Equipo",
    "componente_info": "Componente",
}


def build_comment(ticket_number: str, draft: TicketDraft) -> str:
    parts = [f"Ticket {ticket_number} creado automáticamente desde WhatsApp"]
    for field, label in _COMMENT_FIELDS.items():
        value = getattr(draft, field)
        if value:
            parts.append(f"{label}: {value}")
    return " | ".join(parts)


def parse_comment(comentarios: Optional[str]) -> Dict[str, str]:
    """Read back the labelled fields written by build_comment."""
    found: Dict[str, str] = {}
    if not comentarios:
        return found
    for field, label in _COMMENT_FIELDS.items():
        match = re.search(rf"(?:^|\|)\s*{label}:\s*([^|\n]+)", comentarios)
        if match:
            found[field] = match.group(1).strip()
    return found


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def row_to_ticket(row: Dict[str, Any]) -> Ticket:
    extra = parse_comment(row.get("comentarios"))
    return Ticket(
        id=str(row["id"]),
        ticket_number=row["numero_reporte"],
        descripcion=row.get("descripcion") or "",
        prioridad=Priority(row["prioridad"]),
        estado=TicketStatus(row["estado"]),
        tecnico_asignado=row.get("tecnico_asignado"),
        equipo_id=str(row["equipo_id"]) if row.get("equipo_id") else None,
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
        **extra,
    )


class TicketRepository:
    """SQL for tickets, the daily counter and equipment lookup."""

    def __init__(self, db: PostgresRepository):
        self.db = db

    def next_ticket_number(self, day: date, db: Optional[PostgresRepository] = None) -> str:
        """Reserve the next sequence for ``day``; the upsert serializes concurrent callers."""
        row = (db or self.db).execute_returning(
            """
            INSERT INTO ticket_counters (fecha, ultimo) VALUES (:fecha, 1)
            ON CONFLICT (fecha) DO UPDATE SET ultimo = ticket_counters.ultimo + 1
            RETURNING ultimo
            """,
            {"fecha": day},
        )
        if not row:
            raise RuntimeError("ticket counter upsert returned no row")
        return format_ticket_number(day, int(row["ultimo"]))

    def create(
        self,
        draft: TicketDraft,
        day: date,
        tecnico: str,
        equipo_id: Optional[str] = None,
    ) -> Ticket:
        """Reserve a number and insert the row in one transaction, so a failed insert frees the number."""
        with self.db.transaction() as tx:
            ticket_number = self.next_ticket_number(day, db=tx)
            row = tx.execute_returning(
                f"""
                INSERT INTO mantenimientos (
                    numero_reporte, equipo_id, tipo, descripcion, prioridad, estado,
                    tecnico_asignado, fecha, comentarios, es_programado
                ) VALUES (
                    :numero, :equipo_id, 'Correctivo', :descripcion, :prioridad, :estado,
                    :tecnico, :fecha, :comentarios, false
                )
                RETURNING {_TICKET_COLUMNS}
                """,
                {
                    "numero": ticket_number,
                    "equipo_id": equipo_id,
                    "descripcion": draft.problema or "",
                    "prioridad": (draft.prioridad or Priority.MEDIUM).value,
                    "estado": TicketStatus.PENDING.value,
                    "tecnico": tecnico,
                    "fecha": day,
                    "comentarios": build_comment(ticket_number, draft),
                },
            )
            if not row:
                raise RuntimeError("ticket insert returned no row")
        logger.info("Ticket stored", extra={"ticket_number": ticket_number, "equipo_id": equipo_id})
        return row_to_ticket(row)

    def find_by_number(self, ticket_number: str) -> Optional[Ticket]:
        row = self.db.fetch_one(
            f"SELECT {_TICKET_COLUMNS} FROM mantenimientos WHERE numero_reporte = :numero",
            {"numero": ticket_number},
        )
        return row_to_ticket(row) if row else None

    def update_status(self, ticket_number: str, estado: TicketStatus, nota: Optional[str] = None) -> bool:
        """Change the state and append a note to comentarios; False when no row matched."""
        affected = self.db.execute(
            """
            UPDATE mantenimientos
            SET estado = :estado,
                updated_at = now(),
                comentarios = concat_ws(' | ', comentarios, CAST(:nota AS text))
            WHERE numero_reporte = :numero
            """,
            {"estado": estado.value, "nota": nota, "numero": ticket_number},
        )
        return affected > 0

    def tickets_needing_reminder(self, cutoff: datetime, tecnico: str) -> List[Ticket]:
        """Open tickets of ``tecnico`` not touched since ``cutoff``, oldest first."""
        rows = self.db.fetch_all(
            f"""
            SELECT {_TICKET_COLUMNS} FROM mantenimientos
            WHERE estado IN (:pendiente, :en_proceso)
              AND tecnico_asignado = :tecnico
              AND numero_reporte IS NOT NULL
              AND COALESCE(updated_at, created_at) < :cutoff
            ORDER BY created_at
            """,
            {
                "pendiente": OPEN_STATUSES[0].value,
                "en_proceso": OPEN_STATUSES[1].value,
                "tecnico": tecnico,
                "cutoff": cutoff,
            },
        )
        return [row_to_ticket(row) for row in rows]

    def daily_stats(self, since: datetime, now: datetime, tecnico: str, overdue_hours: int = 24) -> DailyStats:
        """
        Counters for the daily report.

        Completed counts tickets closed since ``since``; every other counter
        covers all tickets still open, whatever day they were created.
        """
        rows = self.db.fetch_all(
            """
            SELECT estado, prioridad, created_at, updated_at FROM mantenimientos
            WHERE tecnico_asignado = :tecnico
              AND (estado <> :finalizado OR updated_at >= :since)
            """,
            {"tecnico": tecnico, "finalizado": TicketStatus.DONE.value, "since": since},
        )
        stats = DailyStats()
        for row in rows:
            estado = row["estado"]
            if estado == TicketStatus.DONE.value:
                stats.completados += 1
                continue
            if estado == TicketStatus.PENDING.value:
                stats.pendientes += 1
            elif estado == TicketStatus.IN_PROGRESS.value:
                stats.en_proceso += 1
            elif estado == TicketStatus.WAITING_PARTS.value:
                stats.esperando_repuestos += 1
            if row["prioridad"] == Priority.CRITICAL.value:
                stats.criticos += 1
            last = row.get("updated_at") or row["created_at"]
            if estado != TicketStatus.WAITING_PARTS.value and (now - last).total_seconds() > overdue_hours * 3600:
                stats.vencidos += 1
        return stats

    def find_equipment(self, equipo_info: str, cliente: Optional[str] = None) -> Optional[EquipmentMatch]:
        """
        Match a detected equipment name against the equipos table.

        Prefer a machine owned by the detected client; otherwise take the
        first machine of that kind; otherwise any machine of the client.
        """
        rows = self.db.fetch_all(
            """
            SELECT id, cliente, nombre_equipo FROM equipos
            WHERE nombre_equipo ILIKE :pattern OR marca ILIKE :pattern OR modelo ILIKE :pattern
            ORDER BY cliente
            LIMIT 20
            """,
            {"pattern": _like_pattern(equipo_info)},
        )
        if rows:
            chosen = rows[0]
            if cliente:
                wanted = cliente.lower()
                for row in rows:
                    owner = (row.get("cliente") or "").strip().lower()
                    if owner and (wanted in owner or owner.split()[0] in wanted):
                        chosen = row
                        break
            return EquipmentMatch(id=str(chosen["id"]), cliente=(chosen.get("cliente") or "").strip(), nombre=chosen.get("nombre_equipo"))

        if cliente:
            row = self.db.fetch_one(
                "SELECT id, cliente, nombre_equipo FROM equipos WHERE cliente ILIKE :pattern LIMIT 1",
                {"pattern": _like_pattern(cliente)},
            )
            if row:
                return EquipmentMatch(id=str(row["id"]), cliente=(row.get("cliente") or "").strip(), nombre=row.get("nombre_equipo"))
        return None
