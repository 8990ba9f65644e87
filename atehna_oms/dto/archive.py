from typing import List

from pydantic import BaseModel, Field, field_validator

from atehna_oms.core.constants import Messages
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger('atehna_oms.archive_dto')


class ArchiveIdsRequest(BaseModel):
    ids: List[int] = Field(default_factory=list, description="Archive entry ids")

    @field_validator("ids")
    def validate_ids(cls, ids):
        """Every id must be a positive integer; duplicates are dropped in order."""
        if any(entry_id < 1 for entry_id in ids):
            logger.warning(f"archive_ids_invalid | ids={ids}")
            raise ValueError(Messages.INVALID_ID)
        return list(dict.fromkeys(ids))
