"""
Gateway webhook handler.

The WhatsApp gateway forwards every message it sees to POST /messages,
either one message per request or a batch under ``messages``.
"""

from __future__ import annotations

import hmac
import json
import os
import uuid
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from ares_bot.models.message import InboundMessage
from ares_bot.utils.error_handling import AppError, UnauthorizedError, json_response, to_response
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

TOKEN_HEADER = "x-gateway-token"


def _check_token(event: Dict[str, Any]) -> None:
    expected = os.environ.get("GATEWAY_TOKEN")
    if not expected:
        return
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    supplied = headers.get(TOKEN_HEADER) or ""
    if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise UnauthorizedError("Invalid gateway token")


def _parse_messages(event: Dict[str, Any]) -> List[InboundMessage]:
    payload = json.loads(event.get("body") or "{}")
    if isinstance(payload, dict) and "messages" in payload:
        items = payload["messages"]
        if not isinstance(items, list):
            raise ValueError("'messages' must be a list")
    else:
        items = [payload]
    return [InboundMessage.model_validate(item) for item in items]


def lambda_handler(event, context):
    """Handle POST /messages."""
    correlation_id = str(uuid.uuid4())

    try:
        _check_token(event)
        messages = _parse_messages(event)

        from ares_bot.services.bot_service import get_bot_service

        bot = get_bot_service()
        results = [bot.handle_message(message).model_dump(mode="json") for message in messages]

        logger.info(
            "Webhook processed",
            extra={
                "correlation_id": correlation_id,
                "messages": len(messages),
                "outcomes": [r["outcome"] for r in results],
            },
        )
        return json_response(200, {"results": results, "correlation_id": correlation_id})

    except AppError as exc:
        logger.warning(
            "Webhook rejected",
            extra={"correlation_id": correlation_id, "error": str(exc), "status": exc.status_code},
        )
        return to_response(exc, correlation_id)
    except (PydanticValidationError, ValueError) as exc:
        return json_response(
            400,
            {"message": "Invalid request", "error": str(exc), "correlation_id": correlation_id},
        )
    except Exception:
        logger.exception("Webhook failed", extra={"correlation_id": correlation_id})
        return json_response(500, {"message": "Internal error", "correlation_id": correlation_id})
