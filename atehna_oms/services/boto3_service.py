from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.boto3_service")


class DocumentStorage:
    """
    S3 storage of generated and uploaded order PDFs. Only removal is needed
    here: stored files are deleted when their archive entry is purged.
    """

    def __init__(self, bucket_name: str = "", s3_client=None):
        self.bucket_name = bucket_name
        self.s3_client = s3_client

    @classmethod
    def from_configs(cls, configs) -> "DocumentStorage":
        if not configs.AWS_INTEGRATION_ENABLED:
            logger.info("document_storage_disabled")
            return cls()
        s3_client = boto3.client(
            's3',
            aws_access_key_id=configs.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=configs.AWS_SECRET_ACCESS_KEY,
            region_name=configs.AWS_S3_REGION_NAME
        )
        logger.info(f"document_storage_initialized | bucket={configs.AWS_STORAGE_BUCKET_NAME}")
        return cls(configs.AWS_STORAGE_BUCKET_NAME, s3_client)

    @property
    def enabled(self) -> bool:
        return self.s3_client is not None and bool(self.bucket_name)

    @staticmethod
    def object_key(blob_pathname: Optional[str], blob_url: Optional[str]) -> Optional[str]:
        """Stored path wins; otherwise the key is the path part of the URL."""
        if blob_pathname:
            return blob_pathname.lstrip("/")
        if blob_url:
            path = urlparse(blob_url).path.lstrip("/")
            return path or None
        return None

    def delete_object(self, blob_pathname: Optional[str], blob_url: Optional[str] = None) -> bool:
        """Best effort: failures are logged and reported as False, never raised."""
        key = self.object_key(blob_pathname, blob_url)
        if not self.enabled or not key:
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"document_object_deleted | key={key}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"document_object_delete_failed | key={key} error={e}")
            return False
