"""
SQLAlchemy Database Configuration
One explicitly constructed Database per process: opened in the application
lifespan, handed to repositories, disposed on shutdown.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterable, List, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.database")

from atehna_oms.core.exceptions import SchemaVersionError

# Base class for ORM models
Base = declarative_base()

# Tables and soft-delete columns the admin back office cannot run without
REQUIRED_SCHEMA = {
    "orders": {"id", "order_number", "status", "payment_status", "payment_notes", "deleted_at"},
    "order_items": {"id", "order_id"},
    "order_documents": {"id", "order_id", "blob_url", "blob_pathname", "deleted_at"},
    "order_payment_logs": {"id", "order_id", "previous_status", "new_status", "note", "created_at"},
    "deleted_archive_entries": {
        "id", "item_type", "order_id", "document_id", "label", "payload", "deleted_at", "expires_at",
    },
}


def normalize_database_url(raw_url: str) -> str:
    """Convert postgres:// and postgresql:// URLs to the psycopg3 dialect."""
    raw_url = (raw_url or "").strip()
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://"):]
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def create_db_engine(database_url: str, pool_size: int = 10, max_overflow: int = 20) -> Engine:
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        # In-memory SQLite: single shared connection so every session sees the same tables
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False,
    )


class Database:
    """Owns the engine and session factory; passed explicitly to repositories."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"database_engine_ready | dialect={engine.dialect.name}")

    @classmethod
    def from_url(cls, database_url: str, pool_size: int = 10, max_overflow: int = 20) -> "Database":
        return cls(create_db_engine(database_url, pool_size=pool_size, max_overflow=max_overflow))

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def supports_row_locks(self) -> bool:
        """SELECT ... FOR UPDATE is only emitted where the dialect understands it."""
        return self.dialect_name in ("postgresql", "mysql", "mariadb", "oracle")

    def lock_clause(self) -> str:
        return " FOR UPDATE" if self.supports_row_locks else ""

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        Session with transaction management for raw SQL operations.
        Commits when the block exits cleanly, rolls back on any exception.
        """
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def execute_raw_sql_readonly(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            result = db.execute(text(query), params or {})
            return [dict(row) for row in result.mappings().all()]
        finally:
            db.close()

    def ping(self) -> bool:
        try:
            self.execute_raw_sql_readonly("SELECT 1 AS ok")
            return True
        except Exception as e:
            logger.error(f"database_ping_failed | error={e}")
            return False

    def verify_schema(self, required: Optional[Dict[str, Iterable[str]]] = None) -> None:
        """
        One-time startup gate: every required table and column must exist.
        Raises SchemaVersionError naming what is missing.
        """
        required = required or REQUIRED_SCHEMA
        inspector = inspect(self.engine)
        existing_tables = set(inspector.get_table_names())
        missing: List[str] = []
        for table, columns in required.items():
            if table not in existing_tables:
                missing.append(table)
                continue
            existing_columns = {column["name"] for column in inspector.get_columns(table)}
            missing.extend(f"{table}.{column}" for column in sorted(set(columns) - existing_columns))
        if missing:
            logger.error(f"schema_verification_failed | missing={missing}")
            raise SchemaVersionError(
                f"Database schema is out of date, run the migrations. Missing: {', '.join(missing)}"
            )
        logger.info("schema_verification_passed")

    def close(self) -> None:
        self.engine.dispose()
        logger.info("database_engine_disposed")
