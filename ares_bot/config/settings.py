"""
Runtime settings for the bot Lambdas.

Read once per container from environment variables; the CDK stack sets
them on every function.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _flag(name: str, default: bool) -> bool:
    return os.environ.get(name, "true" if default else "false").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class BotSettings:
    """Application settings with defaults suited to local runs and tests."""

    environment: str = "dev"

    # Chat targets as understood by the gateway (e.g. "1203...@g.us").
    group_chat_id: str = ""
    technician_chat_id: str = ""
    technician_name: str = "Javier Lopez"
    manager_chat_id: str = ""

    # WhatsApp gateway
    gateway_url: str = "http://localhost:3000"
    gateway_token: Optional[str] = None
    gateway_timeout_seconds: float = 15.0

    # Reports
    reports_bucket: Optional[str] = None
    reports_prefix: str = "reports"
    report_link_ttl_seconds: int = 3600

    # Classification
    entity_registry_path: Optional[str] = None
    # Pending product-owner confirmation: the group acknowledgment has always
    # shown the reporter's phone.
    include_phone_in_group: bool = True

    timezone: str = "America/Asuncion"

    # Follow-up thresholds (hours without update)
    critical_reminder_hours: int = 2
    normal_reminder_hours: int = 4
    group_escalation_hours: int = 6
    overdue_hours: int = 24

    # Equipment lookup cache
    cache_ttl_seconds: int = 300
    cache_max_size: int = 128

    @classmethod
    def from_environment(cls) -> "BotSettings":
        """Load settings from environment variables."""
        env = os.environ
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            group_chat_id=env.get("GROUP_CHAT_ID", ""),
            technician_chat_id=env.get("TECHNICIAN_CHAT_ID", ""),
            technician_name=env.get("TECHNICIAN_NAME", "Javier Lopez"),
            manager_chat_id=env.get("MANAGER_CHAT_ID", ""),
            gateway_url=env.get("GATEWAY_URL", "http://localhost:3000"),
            gateway_token=env.get("GATEWAY_TOKEN") or None,
            gateway_timeout_seconds=float(env.get("GATEWAY_TIMEOUT_SECONDS", "15")),
            reports_bucket=env.get("REPORTS_BUCKET") or None,
            reports_prefix=env.get("REPORTS_PREFIX", "reports"),
            report_link_ttl_seconds=int(env.get("REPORT_LINK_TTL_SECONDS", "3600")),
            entity_registry_path=env.get("ENTITY_REGISTRY_PATH") or None,
            include_phone_in_group=_flag("INCLUDE_PHONE_IN_GROUP", True),
            timezone=env.get("TIMEZONE", "America/Asuncion"),
            critical_reminder_hours=int(env.get("CRITICAL_REMINDER_HOURS", "2")),
            normal_reminder_hours=int(env.get("NORMAL_REMINDER_HOURS", "4")),
            group_escalation_hours=int(env.get("GROUP_ESCALATION_HOURS", "6")),
            overdue_hours=int(env.get("OVERDUE_HOURS", "24")),
            cache_ttl_seconds=int(env.get("CACHE_TTL_SECONDS", "300")),
            cache_max_size=int(env.get("CACHE_MAX_SIZE", "128")),
        )
