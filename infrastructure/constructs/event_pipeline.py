"""
Schedule construct: EventBridge rules -> follow-up Lambda.
"""

from typing import Dict

from aws_cdk import (
    Duration,
    aws_events as events,
    aws_events_targets as targets,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct


class SchedulePipelineConstruct(Construct):
    """Hourly reminders and the evening report."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        code: _lambda.Code,
        shared_env: Dict[str, str],
        reminder_rate_minutes: int = 60,
        daily_report_hour_utc: int = 21,
    ) -> None:
        super().__init__(scope, construct_id)

        self.followup_lambda = _lambda.Function(
            self,
            "FollowUpHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="ares_bot.handlers.scheduled.lambda_handler",
            code=code,
            timeout=Duration.seconds(120),
            memory_size=256,
            architecture=_lambda.Architecture.X86_64,
            environment=dict(shared_env),
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        events.Rule(
            self,
            "ReminderRule",
            schedule=events.Schedule.rate(Duration.minutes(reminder_rate_minutes)),
            targets=[
                targets.LambdaFunction(
                    self.followup_lambda,
                    event=events.RuleTargetInput.from_object({"task": "reminders"}),
                )
            ],
        )

        events.Rule(
            self,
            "DailyReportRule",
            schedule=events.Schedule.cron(minute="0", hour=str(daily_report_hour_utc)),
            targets=[
                targets.LambdaFunction(
                    self.followup_lambda,
                    event=events.RuleTargetInput.from_object({"task": "daily_report"}),
                )
            ],
        )
