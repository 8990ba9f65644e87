"""
Deleted archive: soft-deleted orders and documents stay restorable for
ARCHIVE_RETENTION_DAYS, after which the cleanup job purges them for good.
"""
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from atehna_oms.connections.database import Database
from atehna_oms.core.constants import ARCHIVE_RETENTION_DAYS, ArchiveItemType
from atehna_oms.core.exceptions import ArchiveBatchError
from atehna_oms.middlewares.request_context import request_context
from atehna_oms.repository.archive import ArchiveRepository
from atehna_oms.repository.documents import OrderDocumentsRepository
from atehna_oms.repository.orders import OrdersRepository
from atehna_oms.services.boto3_service import DocumentStorage
from atehna_oms.services.page_cache import AdminPageCache
from atehna_oms.utils.datetime_helpers import as_utc, utc_now

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.archive_service")

RETENTION = timedelta(days=ARCHIVE_RETENTION_DAYS)


def compute_expires_at(deleted_at: datetime) -> datetime:
    return deleted_at + RETENTION


def _unique_ids(ids: Iterable[int]) -> List[int]:
    seen = set()
    ordered = []
    for entry_id in ids:
        if entry_id not in seen:
            seen.add(entry_id)
            ordered.append(entry_id)
    return ordered


class ArchiveService:
    """Records, lists, restores and purges deleted archive entries."""

    def __init__(
        self,
        database: Database,
        page_cache: Optional[AdminPageCache] = None,
        document_storage: Optional[DocumentStorage] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.database = database
        self.archive_repository = ArchiveRepository(database)
        self.orders_repository = OrdersRepository(database)
        self.documents_repository = OrderDocumentsRepository(database)
        self.page_cache = page_cache or AdminPageCache(None)
        self.document_storage = document_storage or DocumentStorage()
        self.clock = clock

    def record_deleted_archive_entry(
        self,
        item_type: str,
        order_id: int,
        label: str,
        payload: Optional[Dict[str, Any]] = None,
        document_id: Optional[int] = None,
        deleted_at: Optional[datetime] = None,
        conn: Optional[Session] = None,
    ) -> Dict[str, Any]:
        """
        Insert the archive entry for a soft-delete that just happened.

        Pass ``conn`` to join the transaction that set the delete marker;
        without it the entry is written in a transaction of its own.
        """
        if item_type not in (ArchiveItemType.ORDER, ArchiveItemType.PDF):
            raise ValueError(f"Unknown archive item type: {item_type}")
        if order_id is None:
            raise ValueError("Archive entries always reference an order")
        if item_type == ArchiveItemType.PDF and document_id is None:
            raise ValueError("Archive entries for documents need a document id")

        deleted_at = deleted_at or self.clock()
        expires_at = compute_expires_at(deleted_at)
        params = dict(
            item_type=item_type,
            order_id=order_id,
            document_id=document_id,
            label=label,
            payload=payload,
            deleted_at=deleted_at,
            expires_at=expires_at,
        )
        if conn is not None:
            entry_id = self.archive_repository.insert_entry(conn, **params)
        else:
            with self.database.transaction() as own_conn:
                entry_id = self.archive_repository.insert_entry(own_conn, **params)

        logger.info(
            f"archive_entry_recorded | id={entry_id} item_type={item_type} order_id={order_id} "
            f"document_id={document_id} expires_at={expires_at.isoformat()}"
        )
        return {"id": entry_id, "deleted_at": deleted_at, "expires_at": expires_at}

    def fetch_archive_entries(self, item_type: Optional[str] = ArchiveItemType.ALL) -> List[Dict[str, Any]]:
        """Entries newest-deleted first, optionally only orders or only PDFs."""
        item_type = ArchiveItemType.normalize_filter(item_type)
        entries = self.archive_repository.get_entries(item_type)
        for entry in entries:
            entry["deleted_at"] = as_utc(entry["deleted_at"])
            entry["expires_at"] = as_utc(entry["expires_at"])
        return entries

    def restore_archive_entries(self, ids: Iterable[int]) -> int:
        """
        Clear the delete marker of each referenced row and drop its entry.
        Every id runs in its own transaction; failures are collected and
        raised together after the whole batch ran.
        """
        restored = 0
        failed_ids: List[int] = []
        errors: List[str] = []
        touched_orders = set()

        for entry_id in _unique_ids(ids):
            request_context.archive_entry_id = entry_id
            try:
                with self.database.transaction() as conn:
                    entry = self.archive_repository.get_entry(conn, entry_id, for_update=True)
                    if entry is None:
                        logger.info(f"archive_restore_skipped | id={entry_id} reason=entry_not_found")
                        continue

                    if entry["item_type"] == ArchiveItemType.PDF:
                        affected = self.documents_repository.restore(conn, entry["document_id"])
                    else:
                        affected = self.orders_repository.restore(conn, entry["order_id"])
                    self.archive_repository.delete_entry(conn, entry_id)

                if affected == 0:
                    logger.warning(
                        f"archive_restore_row_missing | id={entry_id} item_type={entry['item_type']} "
                        f"order_id={entry['order_id']} document_id={entry['document_id']}"
                    )
                    continue
                restored += 1
                touched_orders.add(entry["order_id"])
                logger.info(f"archive_entry_restored | id={entry_id} item_type={entry['item_type']} order_id={entry['order_id']}")
            except Exception as e:
                failed_ids.append(entry_id)
                errors.append(str(e))
                logger.error(f"archive_restore_error | id={entry_id} error={e}", exc_info=True)
            finally:
                request_context.archive_entry_id = None

        self._invalidate(touched_orders)
        if failed_ids:
            raise ArchiveBatchError(restored, failed_ids, errors)
        return restored

    def permanently_delete_archive_entries(self, ids: Iterable[int]) -> int:
        """
        Physically delete the rows behind the given entries, then the entries.
        Irreversible. Returns the number of archive entries removed.
        """
        deleted = 0
        failed_ids: List[int] = []
        errors: List[str] = []
        touched_orders = set()

        for entry_id in _unique_ids(ids):
            request_context.archive_entry_id = entry_id
            try:
                with self.database.transaction() as conn:
                    entry = self.archive_repository.get_entry(conn, entry_id, for_update=True)
                    if entry is None:
                        logger.info(f"archive_purge_skipped | id={entry_id} reason=entry_not_found")
                        continue
                    stored_files, cascaded = self._purge_rows(conn, entry)
                    removed = self.archive_repository.delete_entry(conn, entry_id)

                deleted += removed + cascaded
                touched_orders.add(entry["order_id"])
                logger.info(
                    f"archive_entry_purged | id={entry_id} item_type={entry['item_type']} "
                    f"order_id={entry['order_id']} cascaded_entries={cascaded}"
                )
                # files go only after the rows are gone for good
                for blob_pathname, blob_url in stored_files:
                    self.document_storage.delete_object(blob_pathname, blob_url)
            except Exception as e:
                failed_ids.append(entry_id)
                errors.append(str(e))
                logger.error(f"archive_purge_error | id={entry_id} error={e}", exc_info=True)
            finally:
                request_context.archive_entry_id = None

        self._invalidate(touched_orders)
        if failed_ids:
            raise ArchiveBatchError(deleted, failed_ids, errors)
        return deleted

    def cleanup_expired_archive_entries(self, now: Optional[datetime] = None) -> int:
        """Purge every entry whose retention window has run out."""
        now = now or self.clock()
        expired_ids = self.archive_repository.get_expired_entry_ids(now)
        if not expired_ids:
            logger.info(f"archive_cleanup_nothing_expired | now={now.isoformat()}")
            return 0
        logger.info(f"archive_cleanup_started | now={now.isoformat()} expired={len(expired_ids)}")
        deleted = self.permanently_delete_archive_entries(expired_ids)
        logger.info(f"archive_cleanup_finished | deleted={deleted}")
        return deleted

    def _purge_rows(self, conn: Session, entry: Dict[str, Any]) -> Tuple[List[Tuple[Optional[str], Optional[str]]], int]:
        """
        Delete the original row(s) of an entry. Returns the stored files to
        remove afterwards and the number of other archive entries dropped along
        with them (pdf entries of a purged order's documents).
        """
        if entry["item_type"] == ArchiveItemType.PDF:
            document = self.documents_repository.get_document_by_id(conn, entry["document_id"])
            if document is None:
                logger.warning(f"archive_purge_row_missing | id={entry['id']} document_id={entry['document_id']}")
                return [], 0
            self.documents_repository.hard_delete(conn, document["id"])
            return [(document["blob_pathname"], document["blob_url"])], 0

        order_id = entry["order_id"]
        documents = self.documents_repository.get_documents_for_order(conn, order_id)
        document_ids = [document["id"] for document in documents]
        cascaded = self.archive_repository.delete_pdf_entries_for_documents(conn, document_ids)
        self.documents_repository.hard_delete_for_order(conn, order_id)
        if self.orders_repository.hard_delete(conn, order_id) == 0:
            logger.warning(f"archive_purge_row_missing | id={entry['id']} order_id={order_id}")
        return [(document["blob_pathname"], document["blob_url"]) for document in documents], cascaded

    def _invalidate(self, order_ids) -> None:
        if not order_ids:
            return
        for order_id in sorted(order_ids):
            self.page_cache.invalidate_order_paths(order_id)
