"""
SQLAlchemy engine for the Supabase Postgres database.

The URL comes from DATABASE_URL or, in deployed stacks, from a Secrets
Manager secret so the connection string never sits in Lambda configuration.
"""

from __future__ import annotations

import json
import os
from typing import Optional

import boto3
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

# Connection pooling for Lambda reuse.
_engine: Optional[Engine] = None


def get_db_engine() -> Optional[Engine]:
    """Get or create SQLAlchemy engine with connection pooling."""
    global _engine
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            secret_arn = os.environ.get("DB_SECRET_ARN")
            if secret_arn:
                db_url = _secret_to_db_url(secret_arn)
        if not db_url:
            logger.warning("DATABASE_URL not set; ticket storage is unavailable")
            return None
        _engine = create_engine(
            db_url,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=2,
            pool_pre_ping=True,
            pool_recycle=300,
        )
    return _engine


def _secret_to_db_url(secret_arn: str) -> Optional[str]:
    """
    Build a SQLAlchemy URL from a secret.

    Accepts either ``{"database_url": "..."}`` or the RDS-style
    ``{"host", "port", "username", "password", "dbname"}`` shape.
    """
    try:
        sm = boto3.client("secretsmanager")
        secret = json.loads(sm.get_secret_value(SecretId=secret_arn)["SecretString"])
    except Exception as exc:
        logger.warning("Failed to load DB secret", extra={"error": str(exc)})
        return None

    if secret.get("database_url"):
        return secret["database_url"]
    host = secret.get("host")
    port = secret.get("port", 5432)
    username = secret.get("username")
    password = secret.get("password")
    dbname = secret.get("dbname", "postgres")
    if not (host and username and password):
        return None
    return f"postgresql+psycopg2://{username}:{password}@{host}:{port}/{dbname}"


def reset_engine() -> None:
    """Dispose the cached engine (tests and credential rotation)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
