"""
Domain exceptions raised by the repositories and services.
The core layer maps them onto HTTP responses.
"""
from typing import List, Optional

from fastapi import HTTPException

from atehna_oms.core.constants import Messages


class AtehnaError(Exception):
    """Base class for every domain error of the admin back office"""

    status_code = 500
    default_message = Messages.SERVER_ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidIdentifierError(AtehnaError):
    status_code = 400
    default_message = Messages.INVALID_ID


class InvalidStatusError(AtehnaError):
    status_code = 400
    default_message = Messages.STATUS_INVALID


class EmptyIdsError(AtehnaError):
    status_code = 400
    default_message = Messages.IDS_MISSING


class InvalidPaginationError(AtehnaError):
    status_code = 400
    default_message = Messages.INVALID_PAGINATION


class OrderNotFoundError(AtehnaError):
    status_code = 404
    default_message = Messages.ORDER_NOT_FOUND

    def __init__(self, order_id: int, message: Optional[str] = None):
        self.order_id = order_id
        super().__init__(message)


class DocumentNotFoundError(AtehnaError):
    status_code = 404
    default_message = Messages.DOCUMENT_NOT_FOUND

    def __init__(self, order_id: int, document_id: int, message: Optional[str] = None):
        self.order_id = order_id
        self.document_id = document_id
        super().__init__(message)


class IllegalStatusTransitionError(AtehnaError):
    status_code = 409
    default_message = Messages.STATUS_TRANSITION_NOT_ALLOWED

    def __init__(self, current_status: Optional[str], new_status: str):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(f"{Messages.STATUS_TRANSITION_NOT_ALLOWED} ({current_status} -> {new_status})")


class ArchiveBatchError(AtehnaError):
    """Some ids of a restore or purge batch failed; the rest were applied."""

    status_code = 500

    def __init__(self, processed_count: int, failed_ids: List[int], errors: List[str]):
        self.processed_count = processed_count
        self.failed_ids = failed_ids
        self.errors = errors
        super().__init__(errors[0] if errors else Messages.SERVER_ERROR)


class SchemaVersionError(AtehnaError):
    """The connected database lacks tables or columns this service needs."""


def as_http_exception(error: AtehnaError) -> HTTPException:
    """HTTP shape of a domain error; batch errors keep their counts."""
    if isinstance(error, ArchiveBatchError):
        return HTTPException(status_code=error.status_code, detail={
            "message": error.message,
            "failedIds": error.failed_ids,
        })
    return HTTPException(status_code=error.status_code, detail=error.message)
