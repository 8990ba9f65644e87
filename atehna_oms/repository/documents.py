from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.orm import Session

from atehna_oms.connections.database import Database
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.documents_repository")

_TIMESTAMP = DateTime(timezone=True)

DOCUMENT_COLUMNS = "d.id, d.order_id, d.type, d.filename, d.blob_url, d.blob_pathname, d.deleted_at, d.created_at"


def _document_select(sql: str):
    return text(sql).columns(deleted_at=_TIMESTAMP, created_at=_TIMESTAMP)


class OrderDocumentsRepository:
    """Raw SQL access to the PDF documents attached to orders."""

    def __init__(self, database: Database):
        self.database = database

    def get_document(self, conn: Session, order_id: int, document_id: int, for_update: bool = False) -> Optional[Dict]:
        query = f"""
            SELECT {DOCUMENT_COLUMNS}
            FROM order_documents d
            WHERE d.id = :document_id AND d.order_id = :order_id
        """
        if for_update:
            query += self.database.lock_clause()
        row = conn.execute(
            _document_select(query), {"document_id": document_id, "order_id": order_id}
        ).mappings().first()
        return dict(row) if row else None

    def get_document_by_id(self, conn: Session, document_id: int) -> Optional[Dict]:
        row = conn.execute(
            _document_select(f"SELECT {DOCUMENT_COLUMNS} FROM order_documents d WHERE d.id = :document_id"),
            {"document_id": document_id},
        ).mappings().first()
        return dict(row) if row else None

    def get_active_documents(self, order_id: int) -> List[Dict]:
        query = f"""
            SELECT {DOCUMENT_COLUMNS}
            FROM order_documents d
            WHERE d.order_id = :order_id AND d.deleted_at IS NULL
            ORDER BY d.created_at DESC, d.id DESC
        """
        try:
            with self.database.transaction() as conn:
                return [dict(row) for row in conn.execute(_document_select(query), {"order_id": order_id}).mappings().all()]
        except Exception as e:
            logger.error(f"documents_fetch_error | order_id={order_id} error={e}", exc_info=True)
            raise

    def get_documents_for_order(self, conn: Session, order_id: int) -> List[Dict]:
        """Every document of an order, soft-deleted ones included."""
        query = f"SELECT {DOCUMENT_COLUMNS} FROM order_documents d WHERE d.order_id = :order_id ORDER BY d.id"
        return [dict(row) for row in conn.execute(_document_select(query), {"order_id": order_id}).mappings().all()]

    def soft_delete(self, conn: Session, document_id: int, deleted_at: datetime) -> int:
        stmt = text(
            "UPDATE order_documents SET deleted_at = :deleted_at WHERE id = :document_id AND deleted_at IS NULL"
        ).bindparams(bindparam("deleted_at", type_=_TIMESTAMP))
        return conn.execute(stmt, {"document_id": document_id, "deleted_at": deleted_at}).rowcount

    def restore(self, conn: Session, document_id: int) -> int:
        return conn.execute(
            text("UPDATE order_documents SET deleted_at = NULL WHERE id = :document_id"),
            {"document_id": document_id},
        ).rowcount

    def hard_delete(self, conn: Session, document_id: int) -> int:
        return conn.execute(
            text("DELETE FROM order_documents WHERE id = :document_id"), {"document_id": document_id}
        ).rowcount

    def hard_delete_for_order(self, conn: Session, order_id: int) -> int:
        return conn.execute(
            text("DELETE FROM order_documents WHERE order_id = :order_id"), {"order_id": order_id}
        ).rowcount
