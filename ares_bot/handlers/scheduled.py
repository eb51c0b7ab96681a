"""
EventBridge-triggered follow-ups.

The schedule rules pass ``{"task": "reminders"}`` hourly and
``{"task": "daily_report"}`` once in the evening.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict

from ares_bot.utils.error_handling import AppError, ValidationError
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

TASKS = ("reminders", "daily_report")


def lambda_handler(event, context) -> Dict[str, Any]:
    correlation_id = str(uuid.uuid4())
    task = (event or {}).get("task")
    try:
        if task not in TASKS:
            raise ValidationError(f"Unknown scheduled task: {task}")

        from ares_bot.services.bot_service import get_container

        followup = get_container().followup
        if task == "reminders":
            run = followup.send_reminders()
            result: Dict[str, Any] = {
                "reminded": run.reminded,
                "escalated": run.escalated,
                "failed": run.failed,
            }
        else:
            result = followup.send_daily_report().model_dump()

        logger.info("Scheduled task finished", extra={"correlation_id": correlation_id, "task": task})
        return {"status": "ok", "task": task, "result": result, "correlation_id": correlation_id}

    except AppError as exc:
        logger.error(
            "Scheduled task failed",
            extra={"correlation_id": correlation_id, "task": task, "error": str(exc)},
        )
        return {"status": "error", "task": task, "error": str(exc), "correlation_id": correlation_id}
