"""
Technician command parsing and handling.

Run with: pytest tests/unit/test_command_service.py -v
"""

from unittest.mock import MagicMock

import pytest

from ares_bot.models.ticket import DailyStats, TicketStatus
from ares_bot.services.command_service import CommandService, parse_command
from ares_bot.utils.error_handling import PersistenceError

NUMBER = "TKT-20250301-004"


class TestParseCommand:
    @pytest.mark.parametrize(
        "text, action",
        [
            ("listo TKT-20250301-004", "listo"),
            ("Listo tkt-20250301-004", "listo"),
            ("PROCESO #TKT-20250301-004", "proceso"),
            ("repuesto TKT-20250301-004", "repuesto"),
            ("repuestos TKT-20250301-004", "repuesto"),
        ],
    )
    def test_status_commands(self, text, action):
        command = parse_command(text)
        assert command.action == action
        assert command.ticket_number == NUMBER
        assert command.details is None

    def test_problem_with_reason(self):
        command = parse_command("problema TKT-20250301-004 falta la placa, hay que pedirla")
        assert command.action == "problema"
        assert command.details == "falta la placa, hay que pedirla"

    def test_problem_without_reason(self):
        assert parse_command("problema TKT-20250301-004").details == "Sin detalles"

    def test_estado(self):
        command = parse_command("  Estado ")
        assert command.action == "estado"
        assert command.ticket_number is None

    @pytest.mark.parametrize(
        "text",
        ["gracias", "listo", "listo TKT-2025-004", "ya está listo TKT-20250301-004", "listo TKT-20250301-004 ok", None],
    )
    def test_not_commands(self, text):
        assert parse_command(text) is None


@pytest.fixture
def tickets(make_ticket):
    service = MagicMock()
    service.find_by_number.return_value = make_ticket(ticket_number=NUMBER)
    service.update_status.return_value = True
    return service


@pytest.fixture
def stats_provider():
    return MagicMock(return_value=DailyStats(pendientes=2, criticos=1))


@pytest.fixture
def commands(tickets, notifier, composer, stats_provider):
    return CommandService(tickets, notifier, composer, stats_provider)


class TestHandle:
    def test_listo_finishes_and_announces(self, commands, tickets, transport, notifier):
        assert commands.handle_text(f"listo {NUMBER}") is not None
        number, estado, nota = tickets.update_status.call_args[0]
        assert (number, estado) == (NUMBER, TicketStatus.DONE)
        assert "Javier Lopez" in nota
        assert transport.texts_to(notifier.technician_id) == [f"✅ Ticket {NUMBER} marcado como completado"]
        assert transport.texts_to(notifier.group_id) == [f"✅ Ticket {NUMBER} completado por Javier Lopez"]

    def test_proceso(self, commands, tickets, transport, notifier):
        commands.handle_text(f"proceso {NUMBER}")
        assert tickets.update_status.call_args[0][1] == TicketStatus.IN_PROGRESS
        assert transport.texts_to(notifier.group_id) == []

    def test_repuesto_pauses(self, commands, tickets, transport, notifier):
        commands.handle_text(f"repuesto {NUMBER}")
        assert tickets.update_status.call_args[0][1] == TicketStatus.WAITING_PARTS
        assert "No recibirás más recordatorios" in transport.texts_to(notifier.technician_id)[0]

    def test_problema_alerts_manager(self, commands, tickets, transport, notifier):
        commands.handle_text(f"problema {NUMBER} cliente no estaba")
        number, estado, nota = tickets.update_status.call_args[0]
        assert estado == TicketStatus.PENDING
        assert nota.endswith("cliente no estaba")
        manager = transport.texts_to(notifier.manager_id)
        assert len(manager) == 1
        assert "cliente no estaba" in manager[0]

    def test_unknown_ticket(self, commands, tickets, transport, notifier):
        tickets.find_by_number.return_value = None
        assert commands.handle(parse_command(f"listo {NUMBER}")) is False
        tickets.update_status.assert_not_called()
        assert transport.texts_to(notifier.technician_id) == [f"❌ No encontré el ticket {NUMBER}"]

    def test_failed_update(self, commands, tickets, transport, notifier):
        tickets.update_status.side_effect = PersistenceError("down")
        assert commands.handle(parse_command(f"listo {NUMBER}")) is False
        assert transport.texts_to(notifier.technician_id) == [f"❌ Error al actualizar ticket {NUMBER}"]
        assert transport.texts_to(notifier.group_id) == []

    def test_estado_sends_summary(self, commands, stats_provider, transport, notifier):
        assert commands.handle(parse_command("estado")) is True
        stats_provider.assert_called_once()
        text = transport.texts_to(notifier.technician_id)[0]
        assert "Pendientes: 2" in text
        assert "Críticos: 1" in text

    def test_unrecognized_text(self, commands, tickets):
        assert commands.handle_text("hola") is None
        tickets.update_status.assert_not_called()
