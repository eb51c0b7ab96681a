"""
Pytest configuration: repository root on sys.path and offline defaults.

Handlers read their configuration from environment variables, so every
variable a Lambda would see gets a harmless test value here.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

import boto3
import pytest


def _ensure_repo_root_on_sys_path() -> None:
    """Add the repository root so `ares_bot` and `infrastructure` import."""
    repo_root = str(Path(__file__).resolve().parents[1])
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ensure_repo_root_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "sa-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "sa-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# Lambda environment variables used by handlers
os.environ.setdefault("GROUP_CHAT_ID", "120363000000000000@g.us")
os.environ.setdefault("TECHNICIAN_CHAT_ID", "595981000001@c.us")
os.environ.setdefault("MANAGER_CHAT_ID", "595981000002@c.us")
os.environ.setdefault("TECHNICIAN_NAME", "Javier Lopez")
os.environ.setdefault("GATEWAY_URL", "http://gateway.test")
os.environ.setdefault("REPORTS_BUCKET", "test-reports-bucket")

# Create a default boto3 session so clients do not error during import.
boto3.setup_default_session(region_name="sa-east-1")


GROUP_ID = "120363000000000000@g.us"
TECHNICIAN_ID = "595981000001@c.us"
MANAGER_ID = "595981000002@c.us"


class RecordingTransport:
    """ChatTransport that keeps every payload instead of sending it."""

    def __init__(self, fail_targets: Tuple[str, ...] = ()):
        self.sent: List[Tuple[str, object]] = []
        self.fail_targets = fail_targets

    def send(self, target, payload) -> Optional[str]:
        from ares_bot.utils.error_handling import DeliveryError

        if target in self.fail_targets:
            raise DeliveryError(f"refused {target}")
        self.sent.append((target, payload))
        return f"msg-{len(self.sent)}"

    def texts_to(self, target: str) -> List[str]:
        return [payload.text for to, payload in self.sent if to == target]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def notifier(transport):
    from ares_bot.services.whatsapp_service import Notifier

    return Notifier(transport, group_id=GROUP_ID, technician_id=TECHNICIAN_ID, manager_id=MANAGER_ID)


@pytest.fixture
def composer():
    from ares_bot.services.response_service import ResponseComposer

    return ResponseComposer(technician_name="Javier Lopez")


@pytest.fixture
def make_ticket():
    """Build a stored Ticket with sensible defaults."""
    from ares_bot.models.message import Priority
    from ares_bot.models.ticket import Ticket, TicketStatus

    def _make(**overrides):
        data = dict(
            id="11",
            ticket_number="TKT-20250301-001",
            descripcion="Hydrafacial no enciende",
            prioridad=Priority.MEDIUM,
            estado=TicketStatus.PENDING,
            tecnico_asignado="Javier Lopez",
            cliente="Clínica San Roque",
            telefono="595981123456",
            equipo_info="Hydrafacial",
            created_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
        )
        data.update(overrides)
        return Ticket(**data)

    return _make
