"""
Inbound message orchestration.

Group messages that read as service requests become tickets; private
messages from the technician are status commands. Everything else is
ignored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ares_bot.config.registry import load_registry
from ares_bot.config.settings import BotSettings
from ares_bot.models.message import InboundMessage, Priority
from ares_bot.models.ticket import DailyStats, Ticket
from ares_bot.services.classification_service import MessageClassifier
from ares_bot.services.command_service import CommandService
from ares_bot.services.followup_service import FollowUpService
from ares_bot.services.response_service import ResponseComposer
from ares_bot.services.ticket_service import TicketService
from ares_bot.services.whatsapp_service import Notifier
from ares_bot.utils.error_handling import PersistenceError
from ares_bot.utils.logging_config import get_logger
from ares_bot.utils.validators import mask_phone, normalize_phone

logger = get_logger(__name__)


class HandleOutcome(str, Enum):
    IGNORED = "ignored"
    NOT_SERVICE_REQUEST = "not_service_request"
    TICKET_CREATED = "ticket_created"
    TICKET_FAILED = "ticket_failed"
    COMMAND = "command"


class HandleResult(BaseModel):
    outcome: HandleOutcome
    ticket_number: Optional[str] = None
    prioridad: Optional[Priority] = None
    command: Optional[str] = None


def _same_chat(a: str, b: str) -> bool:
    """Compare chat ids, tolerating phone formatting differences for direct chats."""
    if not a or not b:
        return False
    if a == b:
        return True
    if a.endswith("@g.us") or b.endswith("@g.us"):
        return False
    left, right = normalize_phone(a), normalize_phone(b)
    return bool(left and right) and left.lstrip("+") == right.lstrip("+")


class BotService:
    """Route an inbound message to ticket creation or command handling."""

    def __init__(
        self,
        classifier: MessageClassifier,
        composer: ResponseComposer,
        tickets: TicketService,
        commands: CommandService,
        notifier: Notifier,
        group_chat_id: str,
        technician_chat_id: str,
    ) -> None:
        self.classifier = classifier
        self.composer = composer
        self.tickets = tickets
        self.commands = commands
        self.notifier = notifier
        self.group_chat_id = group_chat_id
        self.technician_chat_id = technician_chat_id

    def handle_message(self, message: InboundMessage, now: Optional[datetime] = None) -> HandleResult:
        if message.from_me or not message.text.strip():
            return HandleResult(outcome=HandleOutcome.IGNORED)

        if not message.is_group and _same_chat(message.chat_id, self.technician_chat_id):
            command = self.commands.handle_text(message.text, now=now)
            if command is None:
                return HandleResult(outcome=HandleOutcome.IGNORED)
            return HandleResult(
                outcome=HandleOutcome.COMMAND,
                command=command.action,
                ticket_number=command.ticket_number,
            )

        if not _same_chat(message.chat_id, self.group_chat_id):
            logger.debug("Message outside the service group ignored", extra={"is_group": message.is_group})
            return HandleResult(outcome=HandleOutcome.IGNORED)

        result = self.classifier.classify(message.text, message.sender_phone)
        if not result.is_service_request:
            return HandleResult(outcome=HandleOutcome.NOT_SERVICE_REQUEST)

        try:
            ticket = self.tickets.create_ticket(result, now=now)
        except PersistenceError:
            logger.error(
                "Ticket creation failed",
                extra={"message_id": message.message_id, "phone": mask_phone(result.telefono)},
            )
            self.notifier.to_group(self.composer.render_creation_failure())
            return HandleResult(outcome=HandleOutcome.TICKET_FAILED, prioridad=result.prioridad)

        self._announce(ticket)
        return HandleResult(
            outcome=HandleOutcome.TICKET_CREATED,
            ticket_number=ticket.ticket_number,
            prioridad=ticket.prioridad,
        )

    def _announce(self, ticket: Ticket) -> None:
        draft = ticket.to_draft()
        number = ticket.ticket_number
        self.notifier.to_group(self.composer.render_group_response(number, draft))
        self.notifier.to_technician(self.composer.render_technician_notification(number, draft))
        if ticket.prioridad == Priority.CRITICAL:
            self.notifier.to_manager(self.composer.render_manager_alert(number, draft))


class BotContainer:
    """Services wired from settings; built once per warm Lambda container."""

    def __init__(self, settings: BotSettings) -> None:
        from ares_bot.repositories.database import get_db_engine
        from ares_bot.repositories.postgres_repo import PostgresRepository
        from ares_bot.repositories.ticket_repo import TicketRepository
        from ares_bot.services.whatsapp_service import GatewayTransport
        from ares_bot.utils.cache_service import LRUCache

        self.settings = settings
        engine = get_db_engine()
        if engine is None:
            raise PersistenceError("Database is not configured")
        self.repository = TicketRepository(PostgresRepository(engine))
        self.transport = GatewayTransport(
            settings.gateway_url,
            token=settings.gateway_token,
            timeout=settings.gateway_timeout_seconds,
        )
        self.notifier = Notifier(
            self.transport,
            group_id=settings.group_chat_id,
            technician_id=settings.technician_chat_id,
            manager_id=settings.manager_chat_id or None,
        )
        self.composer = ResponseComposer(
            technician_name=settings.technician_name,
            include_phone_in_group=settings.include_phone_in_group,
        )
        self.classifier = MessageClassifier(registry=load_registry(settings.entity_registry_path))
        self.tickets = TicketService(
            self.repository,
            technician_name=settings.technician_name,
            tz=settings.timezone,
            equipment_cache=LRUCache(max_size=settings.cache_max_size, ttl_seconds=settings.cache_ttl_seconds),
        )
        self.followup = FollowUpService(
            self.repository,
            self.notifier,
            self.composer,
            technician_name=settings.technician_name,
            tz=settings.timezone,
            critical_hours=settings.critical_reminder_hours,
            normal_hours=settings.normal_reminder_hours,
            escalation_hours=settings.group_escalation_hours,
            overdue_hours=settings.overdue_hours,
        )
        self.commands = CommandService(self.tickets, self.notifier, self.composer, self._stats)
        self.bot = BotService(
            self.classifier,
            self.composer,
            self.tickets,
            self.commands,
            self.notifier,
            group_chat_id=settings.group_chat_id,
            technician_chat_id=settings.technician_chat_id,
        )

    def _stats(self, now: datetime) -> DailyStats:
        return self.followup.stats(now)

    def report_service(self):
        from ares_bot.repositories.s3_repo import S3Repository
        from ares_bot.services.report_service import ReportService

        if not self.settings.reports_bucket:
            raise PersistenceError("REPORTS_BUCKET is not configured")
        return ReportService(
            self.tickets,
            S3Repository(self.settings.reports_bucket),
            self.notifier,
            self.composer,
            prefix=self.settings.reports_prefix,
            link_ttl_seconds=self.settings.report_link_ttl_seconds,
        )


# Lazy-loaded container to avoid import-time DB connections
_container: Optional[BotContainer] = None


def get_container() -> BotContainer:
    global _container
    if _container is None:
        _container = BotContainer(BotSettings.from_environment())
    return _container


def get_bot_service() -> BotService:
    return get_container().bot


def reset_container() -> None:
    """Drop the cached container (tests and configuration reloads)."""
    global _container
    if _container is not None:
        _container.transport.close()
    _container = None
