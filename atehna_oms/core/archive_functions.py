from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from atehna_oms.core.exceptions import ArchiveBatchError, AtehnaError, EmptyIdsError, as_http_exception
from atehna_oms.core.constants import Messages
from atehna_oms.services.archive_service import ArchiveService
from atehna_oms.utils.datetime_helpers import format_datetime_iso, format_datetime_local

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.archive_functions")


def serialize_archive_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": entry["id"],
        "item_type": entry["item_type"],
        "order_id": entry["order_id"],
        "document_id": entry["document_id"],
        "label": entry["label"],
        "payload": entry["payload"] or {},
        "deleted_at": format_datetime_iso(entry["deleted_at"]),
        "expires_at": format_datetime_iso(entry["expires_at"]),
        "expires_at_display": format_datetime_local(entry["expires_at"]),
    }


def get_archive_entries_core(archive_service: ArchiveService, item_type: Optional[str]):
    try:
        entries = archive_service.fetch_archive_entries(item_type)
        return {"entries": [serialize_archive_entry(entry) for entry in entries]}
    except AtehnaError as exc:
        raise as_http_exception(exc) from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.error(f"archive_list_error | item_type={item_type} error={exc}")
        raise HTTPException(status_code=500, detail=Messages.SERVER_ERROR) from exc


def restore_archive_entries_core(archive_service: ArchiveService, ids: List[int]):
    """Restore a batch; a partial failure still reports how many were restored."""
    if not ids:
        raise as_http_exception(EmptyIdsError())
    try:
        restored = archive_service.restore_archive_entries(ids)
        logger.info(f"archive_restore_completed | requested={len(ids)} restored={restored}")
        return {"success": True, "restoredCount": restored}
    except ArchiveBatchError as exc:
        http_exc = as_http_exception(exc)
        http_exc.detail["restoredCount"] = exc.processed_count
        raise http_exc from exc
    except AtehnaError as exc:
        raise as_http_exception(exc) from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.error(f"archive_restore_error | ids={ids} error={exc}")
        raise HTTPException(status_code=500, detail=Messages.SERVER_ERROR) from exc


def permanently_delete_archive_entries_core(archive_service: ArchiveService, ids: List[int]):
    if not ids:
        raise as_http_exception(EmptyIdsError())
    try:
        deleted = archive_service.permanently_delete_archive_entries(ids)
        logger.info(f"archive_purge_completed | requested={len(ids)} deleted={deleted}")
        return {"success": True, "deletedCount": deleted}
    except ArchiveBatchError as exc:
        http_exc = as_http_exception(exc)
        http_exc.detail["deletedCount"] = exc.processed_count
        raise http_exc from exc
    except AtehnaError as exc:
        raise as_http_exception(exc) from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.error(f"archive_purge_error | ids={ids} error={exc}")
        raise HTTPException(status_code=500, detail=Messages.SERVER_ERROR) from exc


def cleanup_expired_archive_entries_core(archive_service: ArchiveService):
    try:
        deleted = archive_service.cleanup_expired_archive_entries()
        return {"success": True, "deletedCount": deleted}
    except ArchiveBatchError as exc:
        http_exc = as_http_exception(exc)
        http_exc.detail["deletedCount"] = exc.processed_count
        raise http_exc from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.error(f"archive_cleanup_error | error={exc}")
        raise HTTPException(status_code=500, detail=Messages.SERVER_ERROR) from exc
