"""
Archive repository for raw SQL operations on deleted_archive_entries
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, bindparam, text
from sqlalchemy.orm import Session

from atehna_oms.connections.database import Database
from atehna_oms.core.constants import ArchiveItemType
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.archive_repository")

_TIMESTAMP = DateTime(timezone=True)

ENTRY_COLUMNS = "a.id, a.item_type, a.order_id, a.document_id, a.label, a.payload, a.deleted_at, a.expires_at"


def _entry_select(sql: str):
    return text(sql).columns(payload=JSON(), deleted_at=_TIMESTAMP, expires_at=_TIMESTAMP)


class ArchiveRepository:
    def __init__(self, database: Database):
        self.database = database

    def insert_entry(
        self,
        conn: Session,
        item_type: str,
        order_id: int,
        document_id: Optional[int],
        label: str,
        payload: Optional[Dict[str, Any]],
        deleted_at: datetime,
        expires_at: datetime,
    ) -> int:
        stmt = text(
            """
            INSERT INTO deleted_archive_entries (
                item_type, order_id, document_id, label, payload, deleted_at, expires_at
            ) VALUES (
                :item_type, :order_id, :document_id, :label, :payload, :deleted_at, :expires_at
            )
            RETURNING id
            """
        ).bindparams(
            bindparam("payload", type_=JSON()),
            bindparam("deleted_at", type_=_TIMESTAMP),
            bindparam("expires_at", type_=_TIMESTAMP),
        )
        entry_id = conn.execute(stmt, {
            "item_type": item_type,
            "order_id": order_id,
            "document_id": document_id,
            "label": label,
            "payload": payload,
            "deleted_at": deleted_at,
            "expires_at": expires_at,
        }).scalar()
        return int(entry_id)

    def get_entries(self, item_type: str = ArchiveItemType.ALL) -> List[Dict]:
        query = f"SELECT {ENTRY_COLUMNS} FROM deleted_archive_entries a"
        params: Dict[str, Any] = {}
        if item_type != ArchiveItemType.ALL:
            query += " WHERE a.item_type = :item_type"
            params["item_type"] = item_type
        query += " ORDER BY a.deleted_at DESC, a.id DESC"
        try:
            with self.database.transaction() as conn:
                return [dict(row) for row in conn.execute(_entry_select(query), params).mappings().all()]
        except Exception as e:
            logger.error(f"archive_entries_fetch_error | item_type={item_type} error={e}", exc_info=True)
            raise

    def get_entry(self, conn: Session, entry_id: int, for_update: bool = False) -> Optional[Dict]:
        query = f"SELECT {ENTRY_COLUMNS} FROM deleted_archive_entries a WHERE a.id = :entry_id"
        if for_update:
            query += self.database.lock_clause()
        row = conn.execute(_entry_select(query), {"entry_id": entry_id}).mappings().first()
        return dict(row) if row else None

    def get_expired_entry_ids(self, now: datetime) -> List[int]:
        stmt = text(
            "SELECT a.id FROM deleted_archive_entries a WHERE a.expires_at <= :now ORDER BY a.expires_at, a.id"
        ).bindparams(bindparam("now", type_=_TIMESTAMP))
        with self.database.transaction() as conn:
            return [int(entry_id) for entry_id in conn.execute(stmt, {"now": now}).scalars().all()]

    def delete_entry(self, conn: Session, entry_id: int) -> int:
        return conn.execute(
            text("DELETE FROM deleted_archive_entries WHERE id = :entry_id"), {"entry_id": entry_id}
        ).rowcount

    def delete_pdf_entries_for_documents(self, conn: Session, document_ids: List[int]) -> int:
        if not document_ids:
            return 0
        stmt = text(
            "DELETE FROM deleted_archive_entries WHERE item_type = 'pdf' AND document_id IN :document_ids"
        ).bindparams(bindparam("document_ids", expanding=True))
        return conn.execute(stmt, {"document_ids": document_ids}).rowcount
