"""
Environment-specific configuration settings for the CDK stack.

Chat ids and the gateway URL are deployment values; they are read here and
passed to the Lambdas as environment variables.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Stack settings with small, cheap defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "sa-east-1"  # São Paulo, closest to Asunción

    # WhatsApp gateway and chats
    gateway_url: str = "http://localhost:3000"
    group_chat_id: str = ""
    technician_chat_id: str = ""
    technician_name: str = "Javier Lopez"
    manager_chat_id: str = ""
    include_phone_in_group: bool = True

    # Lambda Configuration
    lambda_memory_mb: int = 256
    lambda_timeout_seconds: int = 30

    # Schedules (UTC). Paraguay is UTC-3, so 21:00 UTC is 18:00 local.
    reminder_rate_minutes: int = 60
    daily_report_hour_utc: int = 21

    # Reports
    report_retention_days: int = 365

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        common = dict(
            environment=env,
            aws_region=os.environ.get("AWS_REGION", "sa-east-1"),
            gateway_url=os.environ.get("GATEWAY_URL", "http://localhost:3000"),
            group_chat_id=os.environ.get("GROUP_CHAT_ID", ""),
            technician_chat_id=os.environ.get("TECHNICIAN_CHAT_ID", ""),
            technician_name=os.environ.get("TECHNICIAN_NAME", "Javier Lopez"),
            manager_chat_id=os.environ.get("MANAGER_CHAT_ID", ""),
            include_phone_in_group=os.environ.get("INCLUDE_PHONE_IN_GROUP", "true").lower() == "true",
        )

        # Production overrides
        if env == "prod":
            return cls(**common, lambda_memory_mb=512, lambda_timeout_seconds=60)

        return cls(**common)
