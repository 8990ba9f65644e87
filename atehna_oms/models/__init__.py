from atehna_oms.models.orders import Order, OrderItem, OrderDocument, OrderPaymentLog
from atehna_oms.models.archive import DeletedArchiveEntry

__all__ = ["Order", "OrderItem", "OrderDocument", "OrderPaymentLog", "DeletedArchiveEntry"]
