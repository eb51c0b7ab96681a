"""Deliver stored PDF service reports to the client over WhatsApp."""

from __future__ import annotations

import posixpath
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ares_bot.repositories.s3_repo import S3Repository
from ares_bot.services.numbering_service import canonical_ticket_number
from ares_bot.services.response_service import ResponseComposer
from ares_bot.services.ticket_service import TicketService
from ares_bot.services.whatsapp_service import Notifier, OutboundPayload
from ares_bot.utils.error_handling import DeliveryError, NotFoundError, PersistenceError, ValidationError
from ares_bot.utils.logging_config import get_logger
from ares_bot.utils.validators import mask_phone, normalize_phone

logger = get_logger(__name__)


class ReportService:
    """Look up a ticket's PDFs in S3 and send each one as a document."""

    def __init__(
        self,
        tickets: TicketService,
        storage: S3Repository,
        notifier: Notifier,
        composer: ResponseComposer,
        prefix: str = "reports",
        link_ttl_seconds: int = 3600,
    ) -> None:
        self.tickets = tickets
        self.storage = storage
        self.notifier = notifier
        self.composer = composer
        self.prefix = prefix.strip("/")
        self.link_ttl_seconds = link_ttl_seconds

    def report_keys(self, ticket_number: str) -> List[str]:
        try:
            return sorted(self.storage.list_keys(f"{self.prefix}/{ticket_number}/", suffix=".pdf"))
        except (BotoCoreError, ClientError) as exc:
            raise PersistenceError("Could not list service reports") from exc

    def send_report(self, ticket_number: str, phone: Optional[str] = None) -> List[str]:
        """
        Send every PDF stored for ``ticket_number``.

        The destination is ``phone`` when given, otherwise the phone recorded
        on the ticket. Returns the keys that were delivered.
        """
        number = canonical_ticket_number(ticket_number)
        if number is None:
            raise ValidationError(f"Invalid ticket number: {ticket_number}")

        ticket = self.tickets.find_by_number(number)
        if ticket is None:
            raise NotFoundError(f"Ticket {number} not found")

        destination = normalize_phone(phone) if phone else normalize_phone(ticket.telefono)
        if not destination:
            raise ValidationError(f"No phone number to send the report of {number}")

        keys = self.report_keys(number)
        if not keys:
            raise NotFoundError(f"No reports stored for ticket {number}")

        caption = self.composer.render_report_caption(number, ticket.cliente)
        delivered = []
        for key in keys:
            try:
                url = self.storage.presigned_url(key, expires_in=self.link_ttl_seconds)
            except (BotoCoreError, ClientError) as exc:
                raise PersistenceError("Could not sign report link") from exc
            payload = OutboundPayload(text=caption, document_url=url, filename=posixpath.basename(key))
            if self.notifier.to_client(destination, payload):
                delivered.append(key)

        if not delivered:
            raise DeliveryError(f"Report for {number} could not be delivered")
        logger.info(
            "Report delivered",
            extra={"ticket_number": number, "files": len(delivered), "phone": mask_phone(destination)},
        )
        return delivered
