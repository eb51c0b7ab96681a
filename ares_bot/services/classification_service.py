"""
Service-request classification for messages posted to the ServTec group.

Keyword heuristics over folded text. Vocabulary covers the regional slang
and common misspellings seen in the group.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Sequence, Tuple

from ares_bot.config.registry import DEFAULT_REGISTRY
from ares_bot.models.message import ClassificationResult, Priority
from ares_bot.models.registry import AliasTable, EntityRegistry
from ares_bot.utils.logging_config import get_logger
from ares_bot.utils.text import collapse_whitespace, fold, phrase_pattern
from ares_bot.utils.validators import mask_phone, normalize_phone

logger = get_logger(__name__)

# Fault and urgency words: enough on their own.
SERVICE_TRIGGERS = (
    "problema", "problemas", "prob",
    "falla", "fallas", "fallando", "faya",
    "error", "errores", "eror",
    "no funciona", "no funca", "no enciende", "no ensciende", "no prende",
    "no arranca", "no responde", "no anda", "no sirve", "no tira",
    "no levanta", "no pyta", "no da mas", "no hay caso",
    "roto", "rota", "rotto", "danado", "danada", "danao", "descompuesto",
    "se rompio", "se quemo", "se jodio", "quemado", "kaput",
    "urgente", "urgentisimo", "urjente", "urge", "emergencia", "critico", "critica", "grave",
    "auxilio",
    "mantenimiento", "reparacion", "servicio tecnico",
)

# Request wording and questions only count when they are about a machine.
REQUEST_PHRASES = (
    "ayuda", "ayudame", "ayudanos",
    "revisar", "revision", "revisen", "chequear", "verificar",
    "reparar", "arreglar", "service",
    "importante", "necesito", "necesitamos", "requiere", "solicito",
    "parado", "parada", "frito", "muerto",
)
INQUIRY_PHRASES = ("consulta", "pregunta", "duda", "queria saber", "me gustaria saber")
ASSET_NOUNS = ("equipo", "equipos", "maquina", "maquinas", "aparato", "aparatos", "maquinita")

# "no es (tan|muy|nada) urgente", "nada grave": negated urgency reads as no rush.
NEGATED_URGENCY = re.compile(
    r"(?<!\w)(?:no\s+(?:es|esta|son)\s+(?:(?:tan|muy|nada)\s+)?|nada\s+)"
    r"(?:urgente|urjente|grave|critico|critica)(?!\w)"
)

CRITICAL_PHRASES = (
    "urgente", "urgentisimo", "urjente", "urgentee", "super urgente", "re urgente", "urgencia",
    "critico", "critica", "emergencia", "emergenscia", "grave",
    "parado", "parada", "equipo parado",
    "no funciona", "no funca", "no enciende", "no ensciende", "no prende", "no arranca",
    "no responde", "no tira", "no levanta", "no pyta", "no da mas", "no hay caso",
    "roto", "rota", "rotto", "danado", "danada", "danao", "descompuesto",
    "se rompio", "se quemo", "se jodio", "quemado", "frito", "muerto", "kaput",
    "inmediato", "inmediatamente", "ya", "yaa", "ya mismo", "ahora mismo",
    "auxilio",
)

HIGH_PHRASES = (
    "importante", "importantee", "importantisimo",
    "pronto", "prontoo", "rapido", "rapidoo", "rapidamente", "cuanto antes", "lo antes posible", "asap",
    "necesito", "nesecito", "necesitamos", "lo necesito", "requiere", "rekiere", "requerimos", "solicito",
    "favor", "fabor", "por favor", "porfavor", "porfa", "x favor", "xfavor", "pls", "please",
    "ayuda", "ayudaa", "ayudame", "ayudanos", "error", "errores",
    "me urge", "urge",
    "varios equipos", "varias maquinas", "multiples equipos", "todos los equipos",
    "dos equipos", "tres equipos", "ambos equipos",
)

LOW_PHRASES = (
    "cuando puedas", "cuando pueda", "cuando puedan", "cuando tengas tiempo", "cuando quieras",
    "si podes", "si tenes tiempo", "sin apuro", "sin apurro", "no hay apuro", "no ai apuro",
    "sin prisa", "tranquilo",
    "consulta", "consultta", "pregunta", "una pregunta", "tengo una duda",
    "queria saber", "keria saber", "me gustaria saber",
)


@dataclass(frozen=True)
class PriorityRule:
    """One precedence tier: the first rule whose pattern matches decides."""

    priority: Priority
    pattern: Optional[Pattern[str]] = None
    neutralizers: Optional[Pattern[str]] = None

    @classmethod
    def build(
        cls,
        priority: Priority,
        phrases: Iterable[str] = (),
        neutralizers: Optional[Pattern[str]] = None,
        extra: Optional[Pattern[str]] = None,
    ) -> "PriorityRule":
        """Compile phrases; ``extra`` is an additional raw pattern that also fires the rule."""
        pattern = phrase_pattern(phrases)
        if extra is not None:
            pattern = re.compile(extra.pattern if pattern is None else f"{extra.pattern}|{pattern.pattern}")
        return cls(priority, pattern, neutralizers)

    def match(self, folded: str) -> Optional[str]:
        """Return the phrase that fired, or None. A rule without phrases always fires."""
        if self.pattern is None:
            return "default"
        text = self.neutralizers.sub(" ", folded) if self.neutralizers else folded
        found = self.pattern.search(text)
        return found.group(0) if found else None


# Order is precedence: Crítica, Alta, Baja, then the Media default.
DEFAULT_PRIORITY_RULES: Tuple[PriorityRule, ...] = (
    PriorityRule.build(Priority.CRITICAL, CRITICAL_PHRASES, neutralizers=NEGATED_URGENCY),
    PriorityRule.build(Priority.HIGH, HIGH_PHRASES),
    PriorityRule.build(Priority.LOW, LOW_PHRASES, extra=NEGATED_URGENCY),
    PriorityRule.build(Priority.MEDIUM),
)


class AliasMatcher:
    """Find the earliest alias of any canonical entity in folded text."""

    def __init__(self, table: AliasTable):
        self._canonical = {}
        for name, aliases in table.items():
            for alias in aliases:
                self._canonical.setdefault(collapse_whitespace(fold(alias)), name)
        self._pattern = phrase_pattern(self._canonical)

    def find(self, folded: str) -> Optional[str]:
        if self._pattern is None:
            return None
        found = self._pattern.search(folded)
        if not found:
            return None
        return self._canonical.get(collapse_whitespace(found.group(0)))


class MessageClassifier:
    """
    Decide whether a chat message is a service request and extract what we can.

    Pure and deterministic: safe to share one instance across invocations.
    """

    def __init__(
        self,
        registry: EntityRegistry = DEFAULT_REGISTRY,
        priority_rules: Sequence[PriorityRule] = DEFAULT_PRIORITY_RULES,
    ) -> None:
        if not priority_rules or priority_rules[-1].pattern is not None:
            raise ValueError("the last priority rule must be an unconditional default")
        self.priority_rules = tuple(priority_rules)
        self._clients = AliasMatcher(registry.clients)
        self._equipment = AliasMatcher(registry.equipment)
        self._components = AliasMatcher(registry.components)
        self._triggers = phrase_pattern(SERVICE_TRIGGERS)
        self._machine_requests = phrase_pattern(REQUEST_PHRASES + INQUIRY_PHRASES)
        self._assets = phrase_pattern(ASSET_NOUNS)

    def classify(self, text: str, sender_phone: str = "") -> ClassificationResult:
        """Classify one message. Never raises for any string input."""
        folded = fold(text)
        logger.debug(
            "Processing message",
            extra={"message_length": len(text or ""), "sender": mask_phone(sender_phone)},
        )

        equipo = self._equipment.find(folded)
        if not self.is_service_request(folded, equipment_found=equipo is not None):
            return ClassificationResult.not_a_request()

        prioridad, signal = self.determine_priority(folded)
        result = ClassificationResult(
            is_service_request=True,
            cliente=self._clients.find(folded),
            equipo_info=equipo,
            componente_info=self._components.find(folded),
            problema=collapse_whitespace(text) or None,
            prioridad=prioridad,
            telefono=normalize_phone(sender_phone),
            matched_signals=[signal],
        )
        logger.info(
            "Service request detected",
            extra={
                "cliente": result.cliente,
                "equipo": result.equipo_info,
                "prioridad": prioridad.value,
                "signal": signal,
                "has_phone": result.telefono is not None,
            },
        )
        return result

    def is_service_request(self, folded: str, equipment_found: bool = False) -> bool:
        text = NEGATED_URGENCY.sub(" ", folded)
        if self._triggers.search(text):
            return True
        if self._machine_requests.search(text):
            return equipment_found or bool(self._assets.search(text))
        return False

    def determine_priority(self, folded: str) -> Tuple[Priority, str]:
        """Walk the rules top-down; the last rule always matches."""
        for rule in self.priority_rules:
            signal = rule.match(folded)
            if signal is not None:
                return rule.priority, signal
