"""
API layer construct: shared Lambda + HTTP API routes.

A single Lambda serves the gateway webhook, the classification preview and
report delivery. Uses Docker bundling for dependencies (runs in CI/CD pipeline).
"""

from typing import Dict

from aws_cdk import (
    BundlingOptions,
    Duration,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigw,
    aws_apigatewayv2_integrations as integrations,
    aws_logs as logs,
)
from constructs import Construct


def bundled_code() -> _lambda.Code:
    """Package ares_bot with its runtime dependencies."""
    return _lambda.Code.from_asset(
        ".",
        exclude=["cdk.out", "tests", ".venv", "*.md", "infrastructure", "app.py"],
        bundling=BundlingOptions(
            image=_lambda.Runtime.PYTHON_3_12.bundling_image,
            command=[
                "bash", "-c",
                "pip install --no-cache-dir . -t /asset-output",
            ],
        ),
    )


class ApiLayerConstruct(Construct):
    """Expose the bot endpoints via HTTP API."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        code: _lambda.Code,
        shared_env: Dict[str, str],
        lambda_memory_mb: int = 256,
        lambda_timeout_seconds: int = 30,
    ) -> None:
        super().__init__(scope, construct_id)

        self.main_lambda = _lambda.Function(
            self,
            "ApiHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="ares_bot.handlers.main.lambda_handler",
            code=code,
            memory_size=lambda_memory_mb,
            timeout=Duration.seconds(lambda_timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            environment=dict(shared_env),
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        self.api = apigw.HttpApi(
            self,
            "HttpApi",
            api_name=f"ares-servtec-bot-{environment}",
        )

        integration = integrations.HttpLambdaIntegration(
            "LambdaIntegration", self.main_lambda
        )

        route_defs = [
            (apigw.HttpMethod.GET, "/health"),
            (apigw.HttpMethod.POST, "/messages"),
            (apigw.HttpMethod.POST, "/messages/classify"),
            (apigw.HttpMethod.POST, "/reports/send"),
        ]

        for method, path in route_defs:
            self.api.add_routes(
                path=path,
                methods=[method],
                integration=integration,
            )
