from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.orm import Session

from atehna_oms.connections.database import Database
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.orders_repository")

_TIMESTAMP = DateTime(timezone=True)

ORDER_COLUMNS = """
    o.id, o.order_number, o.customer_type, o.contact_name, o.email, o.phone,
    o.company_name, o.institution_name, o.tax_id_or_vat_id,
    o.street, o.postal_code, o.city, o.notes,
    o.status, o.payment_status, o.payment_notes, o.is_draft,
    o.currency, o.subtotal, o.tax, o.total,
    o.deleted_at, o.created_at, o.updated_at
"""


def _order_select(sql: str):
    return text(sql).columns(deleted_at=_TIMESTAMP, created_at=_TIMESTAMP, updated_at=_TIMESTAMP)


class OrdersRepository:
    """Raw SQL access to orders, order items and the payment status log."""

    def __init__(self, database: Database):
        self.database = database

    # -- reads -----------------------------------------------------------

    def get_order_state(self, conn: Session, order_id: int, for_update: bool = False) -> Optional[Dict]:
        """Minimal order row used by lifecycle writes; locks the row when asked."""
        query = """
            SELECT o.id, o.order_number, o.contact_name, o.status, o.payment_status, o.deleted_at
            FROM orders o
            WHERE o.id = :order_id
        """
        if for_update:
            query += self.database.lock_clause()
        row = conn.execute(
            text(query).columns(deleted_at=_TIMESTAMP), {"order_id": order_id}
        ).mappings().first()
        return dict(row) if row else None

    def get_order(self, order_id: int, include_deleted: bool = False) -> Optional[Dict]:
        query = f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = :order_id"
        if not include_deleted:
            query += " AND o.deleted_at IS NULL"
        try:
            with self.database.transaction() as conn:
                row = conn.execute(_order_select(query), {"order_id": order_id}).mappings().first()
                return dict(row) if row else None
        except Exception as e:
            logger.error(f"order_fetch_error | order_id={order_id} error={e}", exc_info=True)
            raise

    def count_active_orders(self, status: Optional[str] = None, payment_status: Optional[str] = None) -> int:
        clause, params = self._filter_clause(status, payment_status)
        rows = self.database.execute_raw_sql_readonly(
            f"SELECT COUNT(*) AS total_count FROM orders o WHERE o.deleted_at IS NULL{clause}", params
        )
        return int(rows[0].get("total_count", 0)) if rows else 0

    def get_active_orders(
        self,
        page: int,
        page_size: int,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> List[Dict]:
        clause, params = self._filter_clause(status, payment_status)
        query = f"""
            SELECT {ORDER_COLUMNS}
            FROM orders o
            WHERE o.deleted_at IS NULL{clause}
            ORDER BY o.created_at DESC, o.id DESC
            LIMIT :limit OFFSET :offset
        """
        params.update({"limit": page_size, "offset": (page - 1) * page_size})
        try:
            with self.database.transaction() as conn:
                return [dict(row) for row in conn.execute(_order_select(query), params).mappings().all()]
        except Exception as e:
            logger.error(f"orders_fetch_error | page={page} size={page_size} error={e}", exc_info=True)
            raise

    def get_order_items(self, order_id: int) -> List[Dict]:
        return self.database.execute_raw_sql_readonly(
            """
            SELECT oi.id, oi.sku, oi.name, oi.unit, oi.quantity, oi.unit_price, oi.line_total
            FROM order_items oi
            WHERE oi.order_id = :order_id
            ORDER BY oi.id
            """,
            {"order_id": order_id},
        )

    def get_payment_logs(self, order_id: int) -> List[Dict]:
        query = text(
            """
            SELECT l.id, l.order_id, l.previous_status, l.new_status, l.note, l.created_at
            FROM order_payment_logs l
            WHERE l.order_id = :order_id
            ORDER BY l.created_at DESC, l.id DESC
            """
        ).columns(created_at=_TIMESTAMP)
        with self.database.transaction() as conn:
            return [dict(row) for row in conn.execute(query, {"order_id": order_id}).mappings().all()]

    # -- writes (caller owns the transaction) ----------------------------

    def soft_delete(self, conn: Session, order_id: int, deleted_at: datetime) -> int:
        stmt = text(
            "UPDATE orders SET deleted_at = :deleted_at WHERE id = :order_id AND deleted_at IS NULL"
        ).bindparams(bindparam("deleted_at", type_=_TIMESTAMP))
        return conn.execute(stmt, {"order_id": order_id, "deleted_at": deleted_at}).rowcount

    def restore(self, conn: Session, order_id: int) -> int:
        return conn.execute(
            text("UPDATE orders SET deleted_at = NULL WHERE id = :order_id"), {"order_id": order_id}
        ).rowcount

    def update_status(self, conn: Session, order_id: int, status: str, updated_at: datetime) -> int:
        stmt = text(
            "UPDATE orders SET status = :status, updated_at = :updated_at WHERE id = :order_id"
        ).bindparams(bindparam("updated_at", type_=_TIMESTAMP))
        return conn.execute(stmt, {"status": status, "updated_at": updated_at, "order_id": order_id}).rowcount

    def update_payment_status(
        self, conn: Session, order_id: int, status: str, note: Optional[str], updated_at: datetime
    ) -> int:
        stmt = text(
            """
            UPDATE orders
            SET payment_status = :status, payment_notes = :note, updated_at = :updated_at
            WHERE id = :order_id
            """
        ).bindparams(bindparam("updated_at", type_=_TIMESTAMP))
        return conn.execute(
            stmt, {"status": status, "note": note, "updated_at": updated_at, "order_id": order_id}
        ).rowcount

    def insert_payment_log(
        self,
        conn: Session,
        order_id: int,
        previous_status: Optional[str],
        new_status: str,
        note: Optional[str],
        created_at: datetime,
    ) -> None:
        stmt = text(
            """
            INSERT INTO order_payment_logs (order_id, previous_status, new_status, note, created_at)
            VALUES (:order_id, :previous_status, :new_status, :note, :created_at)
            """
        ).bindparams(bindparam("created_at", type_=_TIMESTAMP))
        conn.execute(stmt, {
            "order_id": order_id,
            "previous_status": previous_status,
            "new_status": new_status,
            "note": note,
            "created_at": created_at,
        })

    def create_draft(self, conn: Session, defaults: Dict, created_at: datetime) -> int:
        """Insert a draft order and give it the display number '#<id>'."""
        insert_stmt = text(
            """
            INSERT INTO orders (
                order_number, customer_type, contact_name, email, status, payment_status,
                is_draft, created_at, updated_at
            ) VALUES (
                '', :customer_type, :contact_name, :email, :status, :payment_status,
                :is_draft, :created_at, :created_at
            )
            RETURNING id
            """
        ).bindparams(bindparam("created_at", type_=_TIMESTAMP))
        order_id = conn.execute(insert_stmt, {**defaults, "is_draft": True, "created_at": created_at}).scalar()
        if order_id is None:
            raise RuntimeError("Failed to create draft order")
        conn.execute(
            text("UPDATE orders SET order_number = :order_number WHERE id = :order_id"),
            {"order_number": f"#{order_id}", "order_id": order_id},
        )
        return int(order_id)

    def hard_delete(self, conn: Session, order_id: int) -> int:
        """Physically remove an order with its items (documents go first). The payment log stays."""
        params = {"order_id": order_id}
        conn.execute(text("DELETE FROM order_items WHERE order_id = :order_id"), params)
        return conn.execute(text("DELETE FROM orders WHERE id = :order_id"), params).rowcount

    @staticmethod
    def _filter_clause(status: Optional[str], payment_status: Optional[str]) -> Tuple[str, Dict]:
        clause = ""
        params: Dict = {}
        if status:
            clause += " AND o.status = :status"
            params["status"] = status
        if payment_status:
            clause += " AND o.payment_status = :payment_status"
            params["payment_status"] = payment_status
        return clause, params
