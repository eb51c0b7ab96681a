"""
Data layer construct: report bucket + secrets.

Tickets live in the company's existing Supabase Postgres database, so the
stack only holds its connection string, not a database.
"""

from aws_cdk import (
    RemovalPolicy,
    Duration,
    aws_s3 as s3,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct


class DataLayerConstruct(Construct):
    """Provision storage and credentials."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        report_retention_days: int = 365,
    ) -> None:
        super().__init__(scope, construct_id)

        # Filled in after deploy with {"database_url": "postgresql+psycopg2://..."}.
        self.db_secret = secretsmanager.Secret(
            self,
            "DatabaseUrl",
            description="Supabase Postgres connection string for the ServTec bot",
        )

        # Shared bearer token between the gateway and the bot.
        self.gateway_secret = secretsmanager.Secret(
            self,
            "GatewayToken",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                exclude_punctuation=True,
                password_length=40,
            ),
        )

        # Service-report PDFs, keyed reports/<ticket_number>/<file>.pdf.
        self.reports_bucket = s3.Bucket(
            self,
            "ServiceReports",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            lifecycle_rules=[s3.LifecycleRule(expiration=Duration.days(report_retention_days))],
            removal_policy=RemovalPolicy.RETAIN if environment == "prod" else RemovalPolicy.DESTROY,
            auto_delete_objects=environment != "prod",
        )
