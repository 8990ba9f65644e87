from typing import Optional

from fastapi import APIRouter, Depends, Query

from atehna_oms.core.archive_functions import (
    cleanup_expired_archive_entries_core,
    get_archive_entries_core,
    permanently_delete_archive_entries_core,
    restore_archive_entries_core,
)
from atehna_oms.dto.archive import ArchiveIdsRequest
from atehna_oms.routes.admin.deps import get_archive_service
from atehna_oms.services.archive_service import ArchiveService

archive_router = APIRouter(prefix="/archive", tags=["archive"])


@archive_router.get("")
def list_archive_entries(
    type: Optional[str] = Query("all", description="order | pdf | all"),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """Deleted archive, newest deletion first."""
    return get_archive_entries_core(archive_service, type)


@archive_router.delete("")
def purge_archive_entries(
    body: ArchiveIdsRequest,
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """Permanently delete the selected entries and the rows behind them."""
    return permanently_delete_archive_entries_core(archive_service, body.ids)


@archive_router.patch("")
def restore_archive_entries(
    body: ArchiveIdsRequest,
    archive_service: ArchiveService = Depends(get_archive_service),
):
    return restore_archive_entries_core(archive_service, body.ids)


@archive_router.post("/cleanup")
def cleanup_archive(archive_service: ArchiveService = Depends(get_archive_service)):
    """Scheduled purge of expired entries; guarded by CronSecretMiddleware."""
    return cleanup_expired_archive_entries_core(archive_service)
