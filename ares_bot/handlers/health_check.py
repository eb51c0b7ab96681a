"""Lightweight health check handler."""

import os
from datetime import datetime, timezone

from ares_bot import __version__
from ares_bot.utils.error_handling import json_response


def lambda_handler(event, context):
    """Return 200 with the deployed version; touches neither the database nor the gateway."""
    return json_response(
        200,
        {
            "status": "ok",
            "service": "ares-servtec-bot",
            "version": __version__,
            "environment": os.environ.get("ENVIRONMENT", "dev"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
