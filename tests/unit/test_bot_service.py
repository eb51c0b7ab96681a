"""
BotService tests: message routing, ticket announcements and failures.

The classifier and composer are real; storage is mocked and the chat
transport records what would have been sent.

Run with: pytest tests/unit/test_bot_service.py -v
"""

from unittest.mock import MagicMock

import pytest

from ares_bot.models.message import InboundMessage, Priority
from ares_bot.services.bot_service import BotService, HandleOutcome
from ares_bot.services.classification_service import MessageClassifier
from ares_bot.utils.error_handling import PersistenceError

GROUP = "120363000000000000@g.us"
TECH = "595981000001@c.us"


@pytest.fixture
def tickets(make_ticket):
    service = MagicMock()
    service.create_ticket.side_effect = lambda result, now=None: make_ticket(
        ticket_number="TKT-20250301-007",
        cliente=result.cliente,
        prioridad=result.prioridad,
        descripcion=result.problema,
        equipo_info=result.equipo_info,
        telefono=result.telefono,
    )
    return service


@pytest.fixture
def commands():
    return MagicMock()


@pytest.fixture
def bot(composer, tickets, commands, notifier):
    return BotService(
        MessageClassifier(),
        composer,
        tickets,
        commands,
        notifier,
        group_chat_id=GROUP,
        technician_chat_id=TECH,
    )


def _group_message(text, **overrides):
    data = dict(text=text, sender_phone="595981123456@c.us", chat_id=GROUP, is_group=True, message_id="m1")
    data.update(overrides)
    return InboundMessage(**data)


class TestGroupMessages:
    def test_service_request_creates_ticket(self, bot, transport, notifier):
        result = bot.handle_message(_group_message("Problema con el Hydrafacial de Ares Paraguay"))

        assert result.outcome == HandleOutcome.TICKET_CREATED
        assert result.ticket_number == "TKT-20250301-007"
        assert result.prioridad == Priority.MEDIUM

        group = transport.texts_to(notifier.group_id)
        tech = transport.texts_to(notifier.technician_id)
        assert len(group) == 1 and "TKT-20250301-007" in group[0]
        assert len(tech) == 1 and "Problema con el Hydrafacial de Ares Paraguay" in tech[0]
        assert transport.texts_to(notifier.manager_id) == []

    def test_critical_also_alerts_manager(self, bot, transport, notifier):
        result = bot.handle_message(_group_message("URGENTE: Hydrafacial no funciona"))
        assert result.prioridad == Priority.CRITICAL
        manager = transport.texts_to(notifier.manager_id)
        assert len(manager) == 1
        assert "TICKET CRÍTICO" in manager[0]

    def test_chatter_creates_nothing(self, bot, tickets, transport):
        result = bot.handle_message(_group_message("Hola, ¿cómo están todos?"))
        assert result.outcome == HandleOutcome.NOT_SERVICE_REQUEST
        tickets.create_ticket.assert_not_called()
        assert transport.sent == []

    def test_storage_failure_posts_notice(self, bot, tickets, transport, notifier):
        tickets.create_ticket.side_effect = PersistenceError("down")
        result = bot.handle_message(_group_message("El láser no enciende"))
        assert result.outcome == HandleOutcome.TICKET_FAILED
        assert transport.texts_to(notifier.group_id) == [
            "❌ Error: No se pudo crear el ticket automáticamente. Por favor, crear manualmente."
        ]
        assert transport.texts_to(notifier.technician_id) == []

    def test_delivery_failure_keeps_ticket(self, bot, transport, notifier):
        transport.fail_targets = (notifier.group_id,)
        result = bot.handle_message(_group_message("El láser no enciende"))
        assert result.outcome == HandleOutcome.TICKET_CREATED
        assert len(transport.texts_to(notifier.technician_id)) == 1


class TestIgnoredMessages:
    def test_own_messages(self, bot, tickets):
        result = bot.handle_message(_group_message("falla del láser", from_me=True))
        assert result.outcome == HandleOutcome.IGNORED
        tickets.create_ticket.assert_not_called()

    def test_other_groups(self, bot, tickets):
        result = bot.handle_message(_group_message("falla del láser", chat_id="999@g.us"))
        assert result.outcome == HandleOutcome.IGNORED
        tickets.create_ticket.assert_not_called()

    def test_private_chats_from_others(self, bot, tickets, commands):
        message = InboundMessage(text="falla del láser", chat_id="595981999999@c.us")
        assert bot.handle_message(message).outcome == HandleOutcome.IGNORED
        commands.handle_text.assert_not_called()

    def test_empty_text(self, bot):
        assert bot.handle_message(_group_message("  ")).outcome == HandleOutcome.IGNORED


class TestTechnicianMessages:
    def test_commands_are_delegated(self, bot, commands, tickets):
        from ares_bot.models.ticket import TechnicianCommand

        commands.handle_text.return_value = TechnicianCommand(action="listo", ticket_number="TKT-20250301-001")
        message = InboundMessage(text="listo TKT-20250301-001", chat_id=TECH, sender_phone=TECH)

        result = bot.handle_message(message)
        assert result.outcome == HandleOutcome.COMMAND
        assert result.command == "listo"
        assert result.ticket_number == "TKT-20250301-001"
        tickets.create_ticket.assert_not_called()

    def test_phone_formatting_differences(self, bot, commands):
        from ares_bot.models.ticket import TechnicianCommand

        commands.handle_text.return_value = TechnicianCommand(action="estado")
        message = InboundMessage(text="estado", chat_id="+595981000001")
        assert bot.handle_message(message).outcome == HandleOutcome.COMMAND

    def test_unrecognized_text_is_ignored(self, bot, commands):
        commands.handle_text.return_value = None
        message = InboundMessage(text="gracias", chat_id=TECH)
        assert bot.handle_message(message).outcome == HandleOutcome.IGNORED


class TestContainer:
    """Wiring from BotSettings, with the database engine mocked out."""

    def test_builds_services(self, monkeypatch):
        from ares_bot.config.settings import BotSettings
        from ares_bot.services.bot_service import BotContainer

        monkeypatch.setattr("ares_bot.repositories.database.get_db_engine", lambda: MagicMock())
        settings = BotSettings(
            group_chat_id=GROUP,
            technician_chat_id=TECH,
            technician_name="Ana Benítez",
            reports_bucket="reports-bucket",
            include_phone_in_group=False,
        )
        container = BotContainer(settings)

        assert container.bot.group_chat_id == GROUP
        assert container.composer.technician_name == "Ana Benítez"
        assert container.composer.include_phone_in_group is False
        assert container.tickets.technician_name == "Ana Benítez"
        assert container.report_service().storage.bucket_name == "reports-bucket"
        container.transport.close()

    def test_requires_database(self, monkeypatch):
        from ares_bot.config.settings import BotSettings
        from ares_bot.services.bot_service import BotContainer

        monkeypatch.setattr("ares_bot.repositories.database.get_db_engine", lambda: None)
        with pytest.raises(PersistenceError):
            BotContainer(BotSettings())

    def test_report_service_requires_bucket(self, monkeypatch):
        from ares_bot.config.settings import BotSettings
        from ares_bot.services.bot_service import BotContainer

        monkeypatch.setattr("ares_bot.repositories.database.get_db_engine", lambda: MagicMock())
        container = BotContainer(BotSettings())
        with pytest.raises(PersistenceError):
            container.report_service()

    def test_container_is_cached_until_reset(self, monkeypatch):
        from ares_bot.services import bot_service

        monkeypatch.setattr("ares_bot.repositories.database.get_db_engine", lambda: MagicMock())
        bot_service.reset_container()
        first = bot_service.get_container()
        assert bot_service.get_container() is first
        assert bot_service.get_bot_service() is first.bot
        bot_service.reset_container()
        assert bot_service.get_container() is not first
        bot_service.reset_container()
