"""Pydantic models for chat messages and the ticket domain."""

from ares_bot.models.message import (  # noqa: F401
    ClassificationResult,
    InboundMessage,
    Priority,
)
from ares_bot.models.registry import EntityRegistry  # noqa: F401
from ares_bot.models.ticket import (  # noqa: F401
    OPEN_STATUSES,
    DailyStats,
    EquipmentMatch,
    TechnicianCommand,
    Ticket,
    TicketDraft,
    TicketStatus,
)
