from contextlib import contextmanager
from typing import Optional

from fastapi import HTTPException

from atehna_oms.core.constants import Messages
from atehna_oms.core.exceptions import AtehnaError, as_http_exception
from atehna_oms.services.order_service import OrderService
from atehna_oms.validations.orders import OrderListValidator, parse_identifier, parse_order_id

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.order_functions")


@contextmanager
def _order_errors(event: str, **context):
    """Domain errors keep their status code; anything else becomes a 500."""
    try:
        yield
    except HTTPException:
        raise
    except AtehnaError as exc:
        raise as_http_exception(exc) from exc
    except Exception as exc:  # pylint: disable=broad-except
        details = " ".join(f"{key}={value}" for key, value in context.items())
        logger.error(f"{event} | {details} error={exc}", exc_info=True)
        raise HTTPException(status_code=500, detail=Messages.SERVER_ERROR) from exc


def list_orders_core(
    order_service: OrderService,
    validator: OrderListValidator,
    page: int,
    page_size: int,
    status: Optional[str],
    payment_status: Optional[str],
):
    with _order_errors("orders_list_error", page=page, page_size=page_size):
        validator.validate_page_size(page_size, page)
        validator.validate_filters(status, payment_status)
        return order_service.list_orders(page, page_size, status, payment_status)


def create_draft_order_core(order_service: OrderService):
    with _order_errors("draft_order_error"):
        try:
            order_id = order_service.create_draft_order()
        except RuntimeError as exc:
            logger.error(f"draft_order_not_created | error={exc}")
            raise HTTPException(status_code=500, detail=Messages.DRAFT_NOT_CREATED) from exc
        return {"orderId": order_id}


def get_order_details_core(order_service: OrderService, raw_order_id: str):
    with _order_errors("order_detail_error", order_id=raw_order_id):
        return order_service.get_order_details(parse_order_id(raw_order_id))


def get_payment_logs_core(order_service: OrderService, raw_order_id: str):
    with _order_errors("payment_logs_error", order_id=raw_order_id):
        return {"logs": order_service.get_payment_logs(parse_order_id(raw_order_id))}


def get_documents_core(order_service: OrderService, raw_order_id: str):
    with _order_errors("documents_error", order_id=raw_order_id):
        return {"documents": order_service.get_documents(parse_order_id(raw_order_id))}


def update_order_status_core(order_service: OrderService, raw_order_id: str, status: Optional[str]):
    with _order_errors("order_status_error", order_id=raw_order_id, status=status):
        result = order_service.update_order_status(parse_order_id(raw_order_id), status)
        return {"success": True, "status": result["status"]}


def update_payment_status_core(order_service: OrderService, raw_order_id: str, status: Optional[str], note: Optional[str]):
    with _order_errors("payment_status_error", order_id=raw_order_id, status=status):
        result = order_service.update_order_payment_status(parse_order_id(raw_order_id), status, note)
        return {"success": True, "paymentStatus": result["payment_status"]}


def soft_delete_order_core(order_service: OrderService, raw_order_id: str):
    with _order_errors("order_delete_error", order_id=raw_order_id):
        order_service.soft_delete_order(parse_order_id(raw_order_id))
        return {"success": True}


def soft_delete_document_core(order_service: OrderService, raw_order_id: str, raw_document_id: str):
    with _order_errors("document_delete_error", order_id=raw_order_id, document_id=raw_document_id):
        order_id = parse_order_id(raw_order_id)
        document_id = parse_identifier(raw_document_id)
        order_service.soft_delete_document(order_id, document_id)
        return {"success": True}
