"""Persistence adapters (Postgres via SQLAlchemy Core, S3 via boto3)."""
