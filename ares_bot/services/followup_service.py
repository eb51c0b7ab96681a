"""Periodic reminders to the technician and the daily summary for management."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from ares_bot.models.message import Priority
from ares_bot.models.ticket import DailyStats
from ares_bot.repositories.ticket_repo import TicketRepository
from ares_bot.services.response_service import ResponseComposer
from ares_bot.services.whatsapp_service import Notifier
from ares_bot.utils.error_handling import PersistenceError
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ReminderRun:
    reminded: List[str] = field(default_factory=list)
    escalated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class FollowUpService:
    """Remind about idle tickets and publish the end-of-day report."""

    def __init__(
        self,
        repository: TicketRepository,
        notifier: Notifier,
        composer: ResponseComposer,
        technician_name: str,
        tz: str = "America/Asuncion",
        critical_hours: int = 2,
        normal_hours: int = 4,
        escalation_hours: int = 6,
        overdue_hours: int = 24,
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.composer = composer
        self.technician_name = technician_name
        self.tz = ZoneInfo(tz)
        self.critical_hours = critical_hours
        self.normal_hours = normal_hours
        self.escalation_hours = escalation_hours
        self.overdue_hours = overdue_hours

    def send_reminders(self, now: Optional[datetime] = None) -> ReminderRun:
        """
        Remind the technician about open tickets nobody touched recently.

        Crítica tickets qualify after ``critical_hours``, the rest after
        ``normal_hours``. Crítica tickets idle for ``escalation_hours`` are
        also raised in the service group.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=min(self.critical_hours, self.normal_hours))
        try:
            candidates = self.repository.tickets_needing_reminder(cutoff, self.technician_name)
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not load tickets for reminders") from exc

        run = ReminderRun()
        for ticket in candidates:
            hours = ticket.hours_since_update(now)
            critical = ticket.prioridad == Priority.CRITICAL
            threshold = self.critical_hours if critical else self.normal_hours
            if hours < threshold:
                continue
            if self.notifier.to_technician(self.composer.render_reminder(ticket, hours)):
                run.reminded.append(ticket.ticket_number)
            else:
                run.failed.append(ticket.ticket_number)
            if critical and hours >= self.escalation_hours:
                if self.notifier.to_group(self.composer.render_group_escalation(ticket, hours)):
                    run.escalated.append(ticket.ticket_number)

        logger.info(
            "Reminder run finished",
            extra={
                "candidates": len(candidates),
                "reminded": len(run.reminded),
                "escalated": len(run.escalated),
                "failed": len(run.failed),
            },
        )
        return run

    def stats(self, now: Optional[datetime] = None) -> DailyStats:
        """Counters as of ``now``; "completed today" starts at local midnight."""
        now = now or datetime.now(timezone.utc)
        local_day = now.astimezone(self.tz).date()
        since = datetime.combine(local_day, time.min, tzinfo=self.tz)
        try:
            return self.repository.daily_stats(since, now, self.technician_name, self.overdue_hours)
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not compute ticket statistics") from exc

    def send_daily_report(self, day: Optional[date] = None, now: Optional[datetime] = None) -> DailyStats:
        now = now or datetime.now(timezone.utc)
        if day is not None:
            # End of the requested local day, or now if that is earlier.
            end_of_day = datetime.combine(day, time.max, tzinfo=self.tz)
            now = min(now, end_of_day)
        stats = self.stats(now)
        delivered = self.notifier.to_manager(self.composer.render_daily_report(stats))
        logger.info("Daily report sent", extra={"delivered": delivered, **stats.model_dump()})
        return stats
