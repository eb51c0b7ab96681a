"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One function keeps the classifier, the engine and the gateway client warm
across routes.
"""

from typing import Callable, Tuple

from ares_bot.handlers import classification, health_check, reports, webhook
from ares_bot.utils.error_handling import json_response


def lambda_handler(event, context):
    """Entry point invoked by API Gateway HTTP API."""
    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method.upper()} {path.rstrip('/') or '/'}"

    # Exact route keys, trailing slash ignored.
    route_table: Tuple[Tuple[str, Callable], ...] = (
        ("GET /health", health_check.lambda_handler),
        ("POST /messages/classify", classification.lambda_handler),
        ("POST /messages", webhook.lambda_handler),
        ("POST /reports/send", reports.lambda_handler),
    )

    for key, handler in route_table:
        if route_key == key:
            return handler(event, context)

    return json_response(404, {"message": "Route not found", "route": route_key})
