import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
import sqlalchemy
from sqlalchemy import event
from sqlalchemy.engine import Connection, Engine

from config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _to_records(df: pd.DataFrame) -> List[Row]:
    """JSON-friendly records; NaN/NaT become None."""
    df = df.astype(object)
    return df.where(df.notna(), None).to_dict(orient="records")


class DatabaseClient:
    """
    Pooled SQL Server client used by the query gateway.

    Each call checks a connection out of the pool, switches to the target
    database, runs exactly one statement and returns the connection.
    Validation is not this class's job: callers only hand it statements
    that already passed the gateway.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine: Optional[Engine] = None
        self._engine_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        """
        Lazy-create the pooled engine.

        The pool bounds concurrency (pool_size + max_overflow) and recycles
        connections after ``pool_recycle`` seconds. Routes run on a
        threadpool, so creation is serialized and only one engine exists.
        """
        if self._engine is not None:
            return self._engine
        with self._engine_lock:
            if self._engine is None:
                engine = sqlalchemy.create_engine(
                    self.config.connection_url,
                    pool_size=self.config.pool_size,
                    max_overflow=self.config.max_overflow,
                    pool_recycle=self.config.pool_recycle,
                    pool_pre_ping=True,
                    connect_args={"timeout": self.config.connect_timeout},
                )
                event.listen(engine, "connect", self._set_request_timeout)
                self._engine = engine
                logger.info(
                    "Database connection pool created for %s:%s (size=%s)",
                    self.config.host, self.config.port, self.config.pool_size,
                )
            return self._engine

    def _set_request_timeout(self, dbapi_connection, connection_record) -> None:
        # pyodbc query timeout, in seconds
        dbapi_connection.timeout = self.config.request_timeout

    @staticmethod
    def _use(conn: Connection, database: str) -> None:
        conn.exec_driver_sql(f"USE [{database}]")

    def run_statement(self, database: str, sql: str) -> List[Row]:
        """Execute one read statement against ``database``."""
        with self.engine.connect() as conn:
            self._use(conn, database)
            # A plain string goes to the driver untouched, no bind parsing
            df = pd.read_sql_query(sql, conn)
        return _to_records(df)

    def run_stored_procedure(self, database: str, procedure: str, params: Mapping[str, Any]) -> List[Row]:
        """Invoke a procedure with natively bound parameters and return its first result set."""
        assignments = ", ".join(f"@{name} = ?" for name in params)
        statement = f"SET NOCOUNT ON; EXEC [{procedure}] {assignments}".rstrip()

        with self.engine.begin() as conn:
            self._use(conn, database)
            result = conn.exec_driver_sql(statement, tuple(params.values()))
            if not result.returns_rows:
                return []
            df = pd.DataFrame(result.fetchall(), columns=list(result.keys()))
        return _to_records(df)

    def test_connection(self) -> bool:
        """Verify database connectivity."""
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
            return True
        except Exception as exc:
            logger.error("Database connection failed: %s", exc)
            return False

    def close(self) -> None:
        """Dispose of the connection pool."""
        with self._engine_lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Database connection pool closed")
