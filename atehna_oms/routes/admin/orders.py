from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from atehna_oms.core.order_functions import (
    create_draft_order_core,
    get_documents_core,
    get_order_details_core,
    get_payment_logs_core,
    list_orders_core,
    soft_delete_document_core,
    soft_delete_order_core,
    update_order_status_core,
    update_payment_status_core,
)
from atehna_oms.dto.orders import OrderStatusUpdate, PaymentStatusUpdate
from atehna_oms.routes.admin.deps import get_order_list_validator, get_order_service
from atehna_oms.services.order_service import OrderService
from atehna_oms.validations.orders import OrderListValidator

orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.get("")
def list_orders(
    request: Request,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    order_service: OrderService = Depends(get_order_service),
    validator: OrderListValidator = Depends(get_order_list_validator),
):
    page_size = page_size if page_size is not None else request.app.state.configs.ADMIN_ORDERS_PAGE_SIZE
    return list_orders_core(order_service, validator, page, page_size, status, payment_status)


@orders_router.post("", status_code=201)
def create_draft_order(order_service: OrderService = Depends(get_order_service)):
    """Empty draft order to be filled in by the admin."""
    return create_draft_order_core(order_service)


@orders_router.get("/{order_id}")
def get_order_details(order_id: str, order_service: OrderService = Depends(get_order_service)):
    return get_order_details_core(order_service, order_id)


@orders_router.delete("/{order_id}")
def delete_order(order_id: str, order_service: OrderService = Depends(get_order_service)):
    """Soft-delete: the order moves to the deleted archive for 60 days."""
    return soft_delete_order_core(order_service, order_id)


@orders_router.post("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: Optional[OrderStatusUpdate] = None,
    order_service: OrderService = Depends(get_order_service),
):
    return update_order_status_core(order_service, order_id, body.status if body else None)


@orders_router.post("/{order_id}/payment-status")
def update_payment_status(
    order_id: str,
    body: Optional[PaymentStatusUpdate] = None,
    order_service: OrderService = Depends(get_order_service),
):
    body = body or PaymentStatusUpdate()
    return update_payment_status_core(order_service, order_id, body.status, body.note)


@orders_router.get("/{order_id}/payment-logs")
def get_payment_logs(order_id: str, order_service: OrderService = Depends(get_order_service)):
    return get_payment_logs_core(order_service, order_id)


@orders_router.get("/{order_id}/documents")
def get_documents(order_id: str, order_service: OrderService = Depends(get_order_service)):
    return get_documents_core(order_service, order_id)


@orders_router.delete("/{order_id}/documents/{document_id}")
def delete_document(order_id: str, document_id: str, order_service: OrderService = Depends(get_order_service)):
    return soft_delete_document_core(order_service, order_id, document_id)
