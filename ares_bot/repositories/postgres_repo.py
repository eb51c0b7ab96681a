"""PostgreSQL repository using SQLAlchemy Core."""

from contextlib import contextmanager, nullcontext
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine


class PostgresRepository:
    """
    Thin wrapper to keep SQL organized and parameterized.

    Each call runs in its own connection unless the repository comes from
    ``transaction()``, in which case every call shares one connection and
    commits together.
    """

    def __init__(self, engine: Engine, connection: Optional[Connection] = None):
        self.engine = engine
        self._connection = connection

    def _reading(self):
        return nullcontext(self._connection) if self._connection is not None else self.engine.connect()

    def _writing(self):
        return nullcontext(self._connection) if self._connection is not None else self.engine.begin()

    @contextmanager
    def transaction(self) -> Iterator["PostgresRepository"]:
        """Yield a repository bound to one connection; commit on exit, roll back on error."""
        if self._connection is not None:
            yield self
            return
        with self.engine.begin() as conn:
            yield PostgresRepository(self.engine, connection=conn)

    def fetch_one(self, query: str, params: dict) -> Optional[Dict[str, Any]]:
        """Execute a SELECT and return one row as dict."""
        with self._reading() as conn:
            row = conn.execute(text(query), params).fetchone()
            return dict(row._mapping) if row else None

    def fetch_all(self, query: str, params: dict) -> List[Dict[str, Any]]:
        """Execute a SELECT and return every row as dict."""
        with self._reading() as conn:
            return [dict(row._mapping) for row in conn.execute(text(query), params)]

    def execute(self, query: str, params: dict) -> int:
        """Execute a parameterized statement; return affected rows."""
        with self._writing() as conn:
            return conn.execute(text(query), params).rowcount

    def execute_returning(self, query: str, params: dict) -> Optional[Dict[str, Any]]:
        """Execute an INSERT/UPDATE ... RETURNING and fetch the row before commit."""
        with self._writing() as conn:
            row = conn.execute(text(query), params).fetchone()
            return dict(row._mapping) if row else None
