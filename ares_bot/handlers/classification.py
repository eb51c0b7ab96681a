"""
Classification preview handler for POST /messages/classify.

Runs the classifier and renders both messages with a placeholder ticket
number. Nothing is stored and nothing is sent, so operators can check how a
phrasing would be read before relying on it.
"""

from __future__ import annotations

import json
import os
import uuid
from typing import Dict, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ares_bot.config.registry import load_registry
from ares_bot.services.classification_service import MessageClassifier
from ares_bot.services.response_service import ResponseComposer
from ares_bot.utils.error_handling import AppError, json_response, to_response
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

PREVIEW_TICKET_NUMBER = "TKT-00000000-000"


class ClassifyRequest(BaseModel):
    text: str
    sender_phone: str = ""


_classifier: Optional[MessageClassifier] = None
_composer: Optional[ResponseComposer] = None


def _get_classifier() -> MessageClassifier:
    global _classifier
    if _classifier is None:
        _classifier = MessageClassifier(registry=load_registry(os.environ.get("ENTITY_REGISTRY_PATH")))
    return _classifier


def _get_composer() -> ResponseComposer:
    global _composer
    if _composer is None:
        from ares_bot.config.settings import BotSettings

        settings = BotSettings.from_environment()
        _composer = ResponseComposer(
            technician_name=settings.technician_name,
            include_phone_in_group=settings.include_phone_in_group,
        )
    return _composer


def lambda_handler(event, context) -> Dict:
    """Validate the payload, classify, and return the result with rendered previews."""
    correlation_id = str(uuid.uuid4())
    try:
        request = ClassifyRequest.model_validate(json.loads(event.get("body") or "{}"))
        result = _get_classifier().classify(request.text, request.sender_phone)

        body = {
            "classification": result.model_dump(mode="json"),
            "signals": result.matched_signals,
            "correlation_id": correlation_id,
        }
        if result.is_service_request:
            composer = _get_composer()
            body["preview"] = {
                "group_response": composer.render_group_response(PREVIEW_TICKET_NUMBER, result),
                "technician_notification": composer.render_technician_notification(PREVIEW_TICKET_NUMBER, result),
            }

        logger.info(
            "Message classified",
            extra={
                "correlation_id": correlation_id,
                "is_service_request": result.is_service_request,
                "prioridad": result.prioridad.value if result.prioridad else None,
            },
        )
        return json_response(200, body)

    except AppError as exc:
        return to_response(exc, correlation_id)
    except (PydanticValidationError, ValueError) as exc:
        return json_response(
            400,
            {"message": "Invalid request", "error": str(exc), "correlation_id": correlation_id},
        )
    except Exception:
        logger.exception("Classification failed", extra={"correlation_id": correlation_id})
        return json_response(500, {"message": "Internal error", "correlation_id": correlation_id})
