"""
SQLAlchemy ORM Models
Schema declarations for orders and everything an order owns. Queries are
written as raw SQL in the repositories; these models drive migrations and
test databases.
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text,
)
from sqlalchemy.sql import func

from atehna_oms.connections.database import Base
from atehna_oms.models.common import CommonModel


class Order(CommonModel):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), nullable=False, default="", server_default=text("''"))
    customer_type = Column(String(20), nullable=False, default="individual", server_default="individual")
    contact_name = Column(String(200), nullable=False, default="", server_default=text("''"))
    email = Column(String(255), nullable=False, default="", server_default=text("''"))
    phone = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)
    institution_name = Column(String(255), nullable=True)
    tax_id_or_vat_id = Column(String(50), nullable=True)
    street = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="received", server_default="received", index=True)
    payment_status = Column(String(32), nullable=False, default="unpaid", server_default="unpaid")
    payment_notes = Column(Text, nullable=True)
    is_draft = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    currency = Column(String(3), nullable=False, default="EUR", server_default="EUR")
    subtotal = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    tax = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    total = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.status}')>"

    __table_args__ = (
        CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="ck_orders_totals_non_negative"),
        Index("idx_orders_deleted_created", "deleted_at", "created_at"),
    )


class OrderItem(CommonModel):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    sku = Column(String(100), nullable=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(20), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    line_total = Column(Numeric(12, 2), nullable=False, default=0)

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, sku='{self.sku}')>"


class OrderDocument(Base):
    __tablename__ = "order_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    filename = Column(String(255), nullable=False)
    blob_url = Column(String(1024), nullable=False)
    blob_pathname = Column(String(1024), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<OrderDocument(id={self.id}, order_id={self.order_id}, type='{self.type}')>"


class OrderPaymentLog(Base):
    """
    Append-only payment status audit trail. order_id is a plain reference
    (no foreign key) so the log outlives a purged order.
    """
    __tablename__ = "order_payment_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, nullable=False, index=True)
    previous_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<OrderPaymentLog(id={self.id}, order_id={self.order_id}, {self.previous_status}->{self.new_status})>"
