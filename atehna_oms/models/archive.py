from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB

from atehna_oms.connections.database import Base


class DeletedArchiveEntry(Base):
    """
    One row per soft-deleted order or document. order_id / document_id are
    plain references (no foreign keys) so an entry outlives a row that was
    removed by hand.
    """
    __tablename__ = "deleted_archive_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String(10), nullable=False)
    order_id = Column(Integer, nullable=True, index=True)
    document_id = Column(Integer, nullable=True)
    label = Column(String(500), nullable=False)
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<DeletedArchiveEntry(id={self.id}, item_type='{self.item_type}', order_id={self.order_id})>"

    __table_args__ = (
        CheckConstraint("item_type IN ('order', 'pdf')", name="ck_archive_item_type"),
        CheckConstraint(
            "(item_type = 'order' AND order_id IS NOT NULL) OR "
            "(item_type = 'pdf' AND order_id IS NOT NULL AND document_id IS NOT NULL)",
            name="ck_archive_references",
        ),
        Index(
            "uq_archive_order_entry", "order_id", unique=True,
            postgresql_where=text("item_type = 'order'"), sqlite_where=text("item_type = 'order'"),
        ),
        Index(
            "uq_archive_pdf_entry", "document_id", unique=True,
            postgresql_where=text("item_type = 'pdf'"), sqlite_where=text("item_type = 'pdf'"),
        ),
        Index("idx_archive_deleted_at", "deleted_at"),
    )
