"""
Purge expired deleted-archive entries straight against DATABASE_URL.

Usage: python scripts/run_archive_cleanup.py
"""
import sys

from atehna_oms.config.settings import AtehnaConfigs
from atehna_oms.connections.database import Database
from atehna_oms.core.exceptions import ArchiveBatchError
from atehna_oms.services.archive_service import ArchiveService
from atehna_oms.services.boto3_service import DocumentStorage
from atehna_oms.services.page_cache import AdminPageCache

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.archive_cleanup_script")


def main() -> int:
    configs = AtehnaConfigs()
    database = Database.from_url(configs.DATABASE_URL, pool_size=1, max_overflow=0)
    try:
        database.verify_schema()
        archive_service = ArchiveService(
            database,
            page_cache=AdminPageCache.from_configs(configs),
            document_storage=DocumentStorage.from_configs(configs),
        )
        try:
            deleted = archive_service.cleanup_expired_archive_entries()
        except ArchiveBatchError as e:
            logger.error(f"archive_cleanup_partial | deleted={e.processed_count} failed_ids={e.failed_ids}")
            print(f"Purged {e.processed_count} archive entries, failed: {e.failed_ids}")
            return 1
        print(f"Purged {deleted} archive entries")
        return 0
    finally:
        database.close()


if __name__ == "__main__":
    sys.exit(main())
