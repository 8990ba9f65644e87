from typing import Optional

from atehna_oms.core.constants import Messages, OrderStatus, PaymentStatus
from atehna_oms.core.exceptions import InvalidIdentifierError, InvalidPaginationError, InvalidStatusError
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger('atehna_oms.order_validations')


def parse_identifier(raw_value, message: str = Messages.INVALID_ID) -> int:
    """Path ids must be positive integers written in plain digits."""
    value = str(raw_value).strip() if raw_value is not None else ""
    if not value.isdigit() or int(value) < 1:
        logger.warning(f"invalid_identifier | value={raw_value}")
        raise InvalidIdentifierError(message)
    return int(value)


def parse_order_id(raw_value) -> int:
    return parse_identifier(raw_value, Messages.INVALID_ORDER_ID)


class OrderListValidator:
    def __init__(self, max_page_size: int = 100):
        self.max_page_size = max_page_size

    def validate_page_size(self, page_size: int, page: int):
        if page < 1:
            logger.warning(f"Page number must be 1 or greater | page={page}")
            raise InvalidPaginationError()
        if page_size < 1 or page_size > self.max_page_size:
            logger.warning(f"Page size must be between 1 and {self.max_page_size} | page_size={page_size}")
            raise InvalidPaginationError()

    def validate_filters(self, status: Optional[str], payment_status: Optional[str]):
        if status and not OrderStatus.is_valid(status):
            raise InvalidStatusError(Messages.STATUS_INVALID)
        if payment_status and not PaymentStatus.is_valid(payment_status):
            raise InvalidStatusError(Messages.PAYMENT_STATUS_INVALID)
