from fastapi import Request

from atehna_oms.services.archive_service import ArchiveService
from atehna_oms.services.order_service import OrderService
from atehna_oms.validations.orders import OrderListValidator


def get_archive_service(request: Request) -> ArchiveService:
    return request.app.state.archive_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_order_list_validator(request: Request) -> OrderListValidator:
    return OrderListValidator(request.app.state.configs.ADMIN_ORDERS_MAX_PAGE_SIZE)
