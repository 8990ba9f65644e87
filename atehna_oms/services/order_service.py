"""
Order lifecycle for the admin back office: status and payment status
updates, the payment audit log, soft-deletes into the deleted archive,
draft creation and the read side of orders.
"""
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from atehna_oms.connections.database import Database
from atehna_oms.core.constants import (
    DRAFT_ORDER_DEFAULTS,
    AdminPaths,
    ArchiveItemType,
    CustomerType,
    DocumentType,
    Messages,
    OrderStatus,
    PaymentStatus,
    to_display_order_number,
)
from atehna_oms.core.exceptions import (
    DocumentNotFoundError,
    IllegalStatusTransitionError,
    InvalidStatusError,
    OrderNotFoundError,
)
from atehna_oms.middlewares.request_context import request_context
from atehna_oms.repository.documents import OrderDocumentsRepository
from atehna_oms.repository.orders import OrdersRepository
from atehna_oms.services.archive_service import ArchiveService
from atehna_oms.services.page_cache import AdminPageCache
from atehna_oms.utils.datetime_helpers import format_datetime_iso, format_datetime_local, utc_now

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.order_service")


def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def order_label(order: Dict[str, Any]) -> str:
    number = order.get("order_number") or f"#{order['id']}"
    return f"{number} · {order.get('contact_name') or 'Naročilo'}"


def document_label(document: Dict[str, Any], order: Dict[str, Any]) -> str:
    number = order.get("order_number") or f"#{order['id']}"
    return f"{document.get('filename') or DocumentType.get_label(document.get('type'))} · {number}"


def serialize_order(order: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": order["id"],
        "order_number": order["order_number"],
        "display_order_number": to_display_order_number(order["order_number"]),
        "customer_type": order["customer_type"],
        "customer_type_label": CustomerType.get_label(order["customer_type"]),
        "contact_name": order["contact_name"],
        "email": order["email"],
        "phone": order["phone"],
        "company_name": order["company_name"],
        "institution_name": order["institution_name"],
        "tax_id_or_vat_id": order["tax_id_or_vat_id"],
        "street": order["street"],
        "postal_code": order["postal_code"],
        "city": order["city"],
        "notes": order["notes"],
        "status": order["status"],
        "status_label": OrderStatus.get_label(order["status"]),
        "payment_status": order["payment_status"],
        "payment_status_label": PaymentStatus.get_label(order["payment_status"]),
        "payment_notes": order["payment_notes"],
        "is_draft": bool(order["is_draft"]),
        "currency": order["currency"],
        "subtotal": _as_float(order["subtotal"]),
        "tax": _as_float(order["tax"]),
        "total": _as_float(order["total"]),
        "created_at": format_datetime_iso(order["created_at"]),
        "created_at_display": format_datetime_local(order["created_at"]),
        "updated_at": format_datetime_iso(order["updated_at"]),
    }


def serialize_order_item(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": item["id"],
        "sku": item["sku"],
        "name": item["name"],
        "unit": item["unit"],
        "quantity": _as_float(item["quantity"]),
        "unit_price": _as_float(item["unit_price"]),
        "line_total": _as_float(item["line_total"]),
    }


def serialize_document(document: Dict[str, Any]) -> Dict[str, Any]:
    document_type = DocumentType.normalize(document["type"])
    return {
        "id": document["id"],
        "order_id": document["order_id"],
        "type": document_type,
        "type_label": DocumentType.get_label(document_type),
        "filename": document["filename"],
        "blob_url": document["blob_url"],
        "created_at": format_datetime_iso(document["created_at"]),
    }


def serialize_payment_log(log: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": log["id"],
        "order_id": log["order_id"],
        "previous_status": log["previous_status"],
        "previous_status_label": PaymentStatus.get_label(log["previous_status"]) if log["previous_status"] else None,
        "new_status": log["new_status"],
        "new_status_label": PaymentStatus.get_label(log["new_status"]),
        "note": log["note"],
        "created_at": format_datetime_iso(log["created_at"]),
        "created_at_display": format_datetime_local(log["created_at"]),
    }


class OrderService:
    def __init__(
        self,
        database: Database,
        archive_service: ArchiveService,
        page_cache: Optional[AdminPageCache] = None,
        strict_transitions: bool = False,
        clock: Callable = utc_now,
    ):
        self.database = database
        self.archive_service = archive_service
        self.page_cache = page_cache or AdminPageCache(None)
        self.strict_transitions = strict_transitions
        self.clock = clock
        self.orders_repository = OrdersRepository(database)
        self.documents_repository = OrderDocumentsRepository(database)

    # -- lifecycle writes ------------------------------------------------

    def update_order_status(self, order_id: int, status: Optional[str]) -> Dict[str, Any]:
        """Set the fulfilment status of an active order."""
        request_context.order_id = order_id
        if not status:
            raise InvalidStatusError(Messages.STATUS_MISSING)
        if not OrderStatus.is_valid(status):
            raise InvalidStatusError(Messages.STATUS_INVALID)

        with self.database.transaction() as conn:
            order = self.orders_repository.get_order_state(conn, order_id, for_update=True)
            if order is None or order["deleted_at"] is not None:
                raise OrderNotFoundError(order_id)
            previous_status = order["status"]
            if self.strict_transitions and not OrderStatus.can_transition(previous_status, status):
                logger.warning(f"order_status_transition_rejected | order_id={order_id} from={previous_status} to={status}")
                raise IllegalStatusTransitionError(previous_status, status)
            self.orders_repository.update_status(conn, order_id, status, self.clock())

        logger.info(f"order_status_updated | order_id={order_id} from={previous_status} to={status}")
        self.page_cache.invalidate_order_paths(order_id)
        return {"order_id": order_id, "previous_status": previous_status, "status": status}

    def update_order_payment_status(self, order_id: int, status: Optional[str], note: Optional[str] = None) -> Dict[str, Any]:
        """
        Change the payment status and append one payment log row with the
        previous value and the note. Both writes share a transaction.
        """
        request_context.order_id = order_id
        if not PaymentStatus.is_valid(status):
            raise InvalidStatusError(Messages.PAYMENT_STATUS_INVALID)
        note = note.strip() if isinstance(note, str) else None
        note = note or None

        now = self.clock()
        with self.database.transaction() as conn:
            order = self.orders_repository.get_order_state(conn, order_id, for_update=True)
            if order is None or order["deleted_at"] is not None:
                raise OrderNotFoundError(order_id)
            previous_status = order["payment_status"]
            self.orders_repository.update_payment_status(conn, order_id, status, note, now)
            self.orders_repository.insert_payment_log(conn, order_id, previous_status, status, note, now)

        logger.info(f"order_payment_status_updated | order_id={order_id} from={previous_status} to={status}")
        self.page_cache.invalidate_order_paths(order_id)
        return {"order_id": order_id, "previous_status": previous_status, "payment_status": status}

    def soft_delete_order(self, order_id: int) -> Dict[str, Any]:
        """
        Hide the order and record it in the deleted archive. Deleting an
        order that is already deleted changes nothing.
        """
        request_context.order_id = order_id
        now = self.clock()
        with self.database.transaction() as conn:
            order = self.orders_repository.get_order_state(conn, order_id, for_update=True)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order["deleted_at"] is not None:
                logger.info(f"order_already_deleted | order_id={order_id}")
                return {"order_id": order_id, "already_deleted": True}

            self.orders_repository.soft_delete(conn, order_id, now)
            self.archive_service.record_deleted_archive_entry(
                ArchiveItemType.ORDER,
                order_id,
                order_label(order),
                payload={"order_number": order["order_number"]},
                deleted_at=now,
                conn=conn,
            )

        logger.info(f"order_soft_deleted | order_id={order_id}")
        self.page_cache.invalidate_order_paths(order_id)
        return {"order_id": order_id, "already_deleted": False}

    def soft_delete_document(self, order_id: int, document_id: int) -> Dict[str, Any]:
        request_context.order_id = order_id
        now = self.clock()
        with self.database.transaction() as conn:
            order = self.orders_repository.get_order_state(conn, order_id)
            if order is None or order["deleted_at"] is not None:
                raise OrderNotFoundError(order_id)
            document = self.documents_repository.get_document(conn, order_id, document_id, for_update=True)
            if document is None:
                raise DocumentNotFoundError(order_id, document_id)
            if document["deleted_at"] is not None:
                logger.info(f"document_already_deleted | order_id={order_id} document_id={document_id}")
                return {"order_id": order_id, "document_id": document_id, "already_deleted": True}

            self.documents_repository.soft_delete(conn, document_id, now)
            self.archive_service.record_deleted_archive_entry(
                ArchiveItemType.PDF,
                order_id,
                document_label(document, order),
                payload={
                    "order_number": order["order_number"],
                    "filename": document["filename"],
                    "document_type": DocumentType.normalize(document["type"]),
                    "blob_url": document["blob_url"],
                    "blob_pathname": document["blob_pathname"],
                },
                document_id=document_id,
                deleted_at=now,
                conn=conn,
            )

        logger.info(f"document_soft_deleted | order_id={order_id} document_id={document_id}")
        self.page_cache.invalidate_order_paths(order_id)
        return {"order_id": order_id, "document_id": document_id, "already_deleted": False}

    def create_draft_order(self) -> int:
        with self.database.transaction() as conn:
            order_id = self.orders_repository.create_draft(conn, DRAFT_ORDER_DEFAULTS, self.clock())
        request_context.order_id = order_id
        logger.info(f"draft_order_created | order_id={order_id}")
        self.page_cache.invalidate_order_paths(order_id)
        return order_id

    # -- reads -----------------------------------------------------------

    def list_orders(
        self,
        page: int = 1,
        page_size: int = 50,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Active orders newest first; served from the admin page cache when warm."""
        variant = f"page={page}&size={page_size}&status={status or ''}&payment_status={payment_status or ''}"
        cached = self.page_cache.get(AdminPaths.ORDERS, variant)
        if cached is not None:
            return cached

        total_count = self.orders_repository.count_active_orders(status, payment_status)
        orders = self.orders_repository.get_active_orders(page, page_size, status, payment_status)
        total_pages = (total_count + page_size - 1) // page_size
        result = {
            "orders": [serialize_order(order) for order in orders],
            "pagination": {
                "current_page": page,
                "page_size": page_size,
                "total_count": total_count,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_previous": page > 1,
            },
        }
        self.page_cache.set(AdminPaths.ORDERS, result, variant)
        return result

    def get_order_details(self, order_id: int) -> Dict[str, Any]:
        request_context.order_id = order_id
        cached = self.page_cache.get(AdminPaths.order_detail(order_id))
        if cached is not None:
            return cached

        order = self.orders_repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        result = serialize_order(order)
        result["items"] = [serialize_order_item(item) for item in self.orders_repository.get_order_items(order_id)]
        result["documents"] = [serialize_document(doc) for doc in self.documents_repository.get_active_documents(order_id)]
        result["payment_logs"] = [serialize_payment_log(log) for log in self.orders_repository.get_payment_logs(order_id)]
        self.page_cache.set(AdminPaths.order_detail(order_id), result)
        return result

    def get_payment_logs(self, order_id: int) -> List[Dict[str, Any]]:
        self._require_active_order(order_id)
        return [serialize_payment_log(log) for log in self.orders_repository.get_payment_logs(order_id)]

    def get_documents(self, order_id: int) -> List[Dict[str, Any]]:
        self._require_active_order(order_id)
        return [serialize_document(doc) for doc in self.documents_repository.get_active_documents(order_id)]

    def _require_active_order(self, order_id: int) -> None:
        request_context.order_id = order_id
        if self.orders_repository.get_order(order_id) is None:
            raise OrderNotFoundError(order_id)
