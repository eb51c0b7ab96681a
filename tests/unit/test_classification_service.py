"""
MessageClassifier tests: detection, priority tiers and entity extraction.

No AWS or database connection required.

Run with: pytest tests/unit/test_classification_service.py -v
"""

import pytest

from ares_bot.models.message import Priority
from ares_bot.models.registry import EntityRegistry
from ares_bot.services.classification_service import (
    DEFAULT_PRIORITY_RULES,
    MessageClassifier,
    PriorityRule,
)


@pytest.fixture(scope="module")
def classifier():
    return MessageClassifier()


class TestServiceRequestDetection:
    """Which messages become tickets at all."""

    @pytest.mark.parametrize(
        "text",
        [
            "Hola, ¿cómo están todos?",
            "Buen día a todos",
            "Gracias Javier!",
            "",
            "   ",
            "Mañana no vengo, vos sos el que abre",
        ],
    )
    def test_chatter_is_not_a_request(self, classifier, text):
        result = classifier.classify(text, "595981123456")
        assert result.is_service_request is False

    def test_non_request_has_no_optional_fields(self, classifier):
        """Nothing is extracted from chatter, not even the phone."""
        result = classifier.classify("Hola, ¿cómo están todos?", "595981123456@c.us")
        assert result.cliente is None
        assert result.equipo_info is None
        assert result.componente_info is None
        assert result.problema is None
        assert result.prioridad is None
        assert result.telefono is None

    @pytest.mark.parametrize(
        "text",
        [
            "El ND-Elite no enciende",
            "Tenemos una falla en el sistema",
            "necesito que revisen la máquina",
            "PROBLEMA con la pantalla",
        ],
    )
    def test_trigger_words_make_a_request(self, classifier, text):
        assert classifier.classify(text).is_service_request is True

    def test_inquiry_needs_a_machine(self, classifier):
        """A question only counts when it is about equipment."""
        assert classifier.classify("Una pregunta sobre el equipo").is_service_request is True
        assert classifier.classify("Pregunta sobre el Ultraformer").is_service_request is True
        assert classifier.classify("Pregunta: a qué hora es el asado?").is_service_request is False

    @pytest.mark.parametrize(
        "text",
        [
            "Muchas gracias por la ayuda!",
            "Importante: mañana hay reunión a las 9",
            "Necesito el número de Javier",
            "Voy a revisar mi agenda y te aviso",
            "Hoy no va a venir nadie",
            "Estoy muerto de cansancio",
            "Nada urgente, mañana hablamos",
        ],
    )
    def test_request_wording_without_a_machine_is_chatter(self, classifier, text):
        result = classifier.classify(text)
        assert result.is_service_request is False
        assert result.prioridad is None

    @pytest.mark.parametrize(
        "text",
        [
            "Necesito ayuda con el Hydrafacial",
            "Importante: revisar el equipo de la sala 2",
            "El aparato está parado",
        ],
    )
    def test_request_wording_about_a_machine(self, classifier, text):
        assert classifier.classify(text).is_service_request is True

    def test_keywords_match_whole_words_only(self, classifier):
        """'errores' style prefixes match, but keywords inside other words do not."""
        assert classifier.classify("Qué terror de día").is_service_request is False
        assert classifier.classify("Hay errores en la pantalla").is_service_request is True


class TestPriority:
    """One test per tier, plus precedence between tiers."""

    def test_critical(self, classifier):
        result = classifier.classify("URGENTE: Hydrafacial no funciona")
        assert result.prioridad == Priority.CRITICAL

    @pytest.mark.parametrize(
        "text",
        [
            "Problema crítico con equipo parado",
            "ERROR GRAVE - necesito ayuda YA",
            "El láser se quemó",
        ],
    )
    def test_more_critical_wording(self, classifier, text):
        assert classifier.classify(text).prioridad == Priority.CRITICAL

    def test_high(self, classifier):
        assert classifier.classify("Favor revisar equipo rápido").prioridad == Priority.HIGH

    @pytest.mark.parametrize(
        "text",
        [
            "Importante: necesito que vengas pronto a ver el equipo",
            "Requiere atención, problema con múltiples equipos en la clínica",
        ],
    )
    def test_more_high_wording(self, classifier, text):
        assert classifier.classify(text).prioridad == Priority.HIGH

    def test_low(self, classifier):
        assert classifier.classify("Consulta sobre mantenimiento cuando puedas").prioridad == Priority.LOW

    def test_low_inquiry_about_equipment(self, classifier):
        assert classifier.classify("Pregunta sin apuro sobre el equipo").prioridad == Priority.LOW

    def test_medium_is_the_default(self, classifier):
        result = classifier.classify("Problema con el Hydrafacial de Ares Paraguay")
        assert result.prioridad == Priority.MEDIUM
        assert result.matched_signals == ["default"]

    def test_plain_failure_is_medium(self, classifier):
        assert classifier.classify("Tenemos una falla en el sistema").prioridad == Priority.MEDIUM

    def test_critical_wins_over_high(self, classifier):
        assert classifier.classify("Importante y urgente: revisar el HIFU").prioridad == Priority.CRITICAL

    def test_high_wins_over_low(self, classifier):
        assert classifier.classify("Consulta, favor revisar el equipo").prioridad == Priority.HIGH

    def test_negated_urgency_is_not_critical(self, classifier):
        result = classifier.classify("No es urgente, pero hay que revisar el Soprano")
        assert result.prioridad == Priority.LOW

    @pytest.mark.parametrize(
        "text",
        [
            "Falla en el láser, la falla no es crítica",
            "Falla en el láser, no es tan urgente",
            "Problema con el HIFU, no es muy urgente, cuando puedas",
            "El Soprano tiene un problema, nada grave",
            "Falla en la pantalla pero no es nada urgente",
        ],
    )
    def test_qualified_negations_are_low(self, classifier, text):
        result = classifier.classify(text)
        assert result.is_service_request is True
        assert result.prioridad == Priority.LOW

    def test_negation_does_not_hide_other_critical_wording(self, classifier):
        result = classifier.classify("No es grave pero el equipo no enciende")
        assert result.prioridad == Priority.CRITICAL
        assert result.matched_signals == ["no enciende"]

    def test_accents_and_case_do_not_matter(self, classifier):
        assert classifier.classify("CRITICO el equipo").prioridad == Priority.CRITICAL
        assert classifier.classify("crítico el equipo").prioridad == Priority.CRITICAL

    def test_requests_always_carry_a_priority(self, classifier):
        for text in ("falla", "problema urgente", "consulta del equipo", "favor revisar el equipo"):
            result = classifier.classify(text)
            assert result.is_service_request
            assert result.prioridad in set(Priority)


class TestEntityExtraction:
    """Client, equipment, component and phone."""

    def test_client_and_equipment(self, classifier):
        result = classifier.classify("Problema con el Hydrafacial de Ares Paraguay")
        assert result.cliente == "Ares Paraguay"
        assert result.equipo_info == "Hydrafacial"

    def test_client_alias_without_accents(self, classifier):
        result = classifier.classify("Clinica San Roque: el HIFU no prende")
        assert result.cliente == "Clínica San Roque"
        assert result.equipo_info == "HIFU"

    def test_component(self, classifier):
        result = classifier.classify("Se rompió la pieza de mano del Ultraformer")
        assert result.componente_info == "Pieza de mano"
        assert result.equipo_info == "Ultraformer"

    def test_first_mention_wins(self, classifier):
        result = classifier.classify("Falla en el Soprano, no en el Hydrafacial")
        assert result.equipo_info == "Soprano"

    def test_unknown_entities_stay_empty(self, classifier):
        result = classifier.classify("Tenemos una falla en el sistema")
        assert result.cliente is None
        assert result.equipo_info is None
        assert result.componente_info is None

    def test_problem_keeps_full_text(self, classifier):
        result = classifier.classify("  URGENTE:\nHydrafacial   no funciona  ")
        assert result.problema == "URGENTE: Hydrafacial no funciona"

    def test_phone_is_normalized(self, classifier):
        result = classifier.classify("El equipo no enciende", "595981123456@c.us")
        assert result.telefono == "595981123456"

    def test_missing_phone(self, classifier):
        assert classifier.classify("El equipo no enciende", "").telefono is None


class TestConfiguration:
    """Injected registries and rule lists."""

    def test_injected_registry(self):
        registry = EntityRegistry(
            clients={"Clínica Nueva": ("nueva",)},
            equipment={"Morpheus8": ("morpheus",)},
        )
        classifier = MessageClassifier(registry=registry)
        result = classifier.classify("Falla del Morpheus en la clínica nueva")
        assert result.cliente == "Clínica Nueva"
        assert result.equipo_info == "Morpheus8"

    def test_injected_registry_replaces_defaults(self):
        classifier = MessageClassifier(registry=EntityRegistry())
        result = classifier.classify("Problema con el Hydrafacial de Ares Paraguay")
        assert result.cliente is None
        assert result.equipo_info is None

    def test_custom_rules(self):
        rules = (
            PriorityRule.build(Priority.HIGH, ["pantalla"]),
            PriorityRule.build(Priority.LOW),
        )
        classifier = MessageClassifier(priority_rules=rules)
        assert classifier.classify("falla de pantalla").prioridad == Priority.HIGH
        assert classifier.classify("falla del motor").prioridad == Priority.LOW

    def test_rules_must_end_with_a_default(self):
        with pytest.raises(ValueError):
            MessageClassifier(priority_rules=DEFAULT_PRIORITY_RULES[:-1])
        with pytest.raises(ValueError):
            MessageClassifier(priority_rules=())


def test_classification_is_deterministic(classifier):
    text = "URGENTE: el láser de la Clínica Santa Rita no funciona, pieza de mano rota"
    first = classifier.classify(text, "+595 981 123456")
    for _ in range(5):
        assert classifier.classify(text, "+595 981 123456") == first
