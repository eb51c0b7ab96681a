"""
Main CDK Stack for the ARES ServTec WhatsApp bot.
"""

from aws_cdk import (
    Stack,
    Tags,
    CfnOutput,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct, bundled_code
from infrastructure.constructs.event_pipeline import SchedulePipelineConstruct
from infrastructure.config.settings import Settings


class AresBotStack(Stack):
    """Main stack wiring all constructs together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        Tags.of(self).add("Project", "ares-servtec-bot")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Data layer.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
            report_retention_days=settings.report_retention_days,
        )

        shared_env = {
            "ENVIRONMENT": settings.environment,
            "DB_SECRET_ARN": data_construct.db_secret.secret_arn,
            "REPORTS_BUCKET": data_construct.reports_bucket.bucket_name,
            "GATEWAY_URL": settings.gateway_url,
            # Resolved by CloudFormation at deploy time; never stored in the template.
            "GATEWAY_TOKEN": data_construct.gateway_secret.secret_value.unsafe_unwrap(),
            "GROUP_CHAT_ID": settings.group_chat_id,
            "TECHNICIAN_CHAT_ID": settings.technician_chat_id,
            "TECHNICIAN_NAME": settings.technician_name,
            "MANAGER_CHAT_ID": settings.manager_chat_id,
            "INCLUDE_PHONE_IN_GROUP": "true" if settings.include_phone_in_group else "false",
            "TIMEZONE": "America/Asuncion",
        }
        code = bundled_code()

        # 2) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            code=code,
            shared_env=shared_env,
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # 3) Reminders and daily report.
        schedule_construct = SchedulePipelineConstruct(
            self,
            "Schedules",
            code=code,
            shared_env=shared_env,
            reminder_rate_minutes=settings.reminder_rate_minutes,
            daily_report_hour_utc=settings.daily_report_hour_utc,
        )

        for fn in (api_construct.main_lambda, schedule_construct.followup_lambda):
            data_construct.db_secret.grant_read(fn)
            data_construct.reports_bucket.grant_read(fn)

        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "ReportsBucket", value=data_construct.reports_bucket.bucket_name)
        CfnOutput(self, "DatabaseSecretArn", value=data_construct.db_secret.secret_arn)
        CfnOutput(self, "GatewayTokenSecretArn", value=data_construct.gateway_secret.secret_arn)
