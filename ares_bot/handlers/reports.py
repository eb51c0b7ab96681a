"""Report delivery handler for POST /reports/send."""

from __future__ import annotations

import json
import uuid
from typing import Dict, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ares_bot.utils.error_handling import AppError, json_response, to_response
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)


class SendReportRequest(BaseModel):
    ticket_number: str
    phone: Optional[str] = None


def lambda_handler(event, context) -> Dict:
    correlation_id = str(uuid.uuid4())
    try:
        request = SendReportRequest.model_validate(json.loads(event.get("body") or "{}"))

        from ares_bot.services.bot_service import get_container

        delivered = get_container().report_service().send_report(request.ticket_number, request.phone)
        logger.info(
            "Report request served",
            extra={"correlation_id": correlation_id, "files": len(delivered)},
        )
        return json_response(
            200,
            {"status": "sent", "files": delivered, "correlation_id": correlation_id},
        )

    except AppError as exc:
        logger.warning(
            "Report request rejected",
            extra={"correlation_id": correlation_id, "error": str(exc), "status": exc.status_code},
        )
        return to_response(exc, correlation_id)
    except (PydanticValidationError, ValueError) as exc:
        return json_response(
            400,
            {"message": "Invalid request", "error": str(exc), "correlation_id": correlation_id},
        )
    except Exception:
        logger.exception("Report delivery failed", extra={"correlation_id": correlation_id})
        return json_response(500, {"message": "Internal error", "correlation_id": correlation_id})
