"""
Core constants for the Atehna OMS application

This module contains the shared enumerations of the admin back office:
order status and payment status values, customer and document types,
archive item types and the retention window of the deleted archive.
"""

# Soft-deleted orders and documents stay restorable for this many days.
ARCHIVE_RETENTION_DAYS = 60


class OrderStatus:
    """Order status constants for lifecycle management"""

    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    PARTIALLY_SENT = "partially_sent"
    SENT = "sent"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    REFUNDED_RETURNED = "refunded_returned"

    STATUS_LABELS = {
        RECEIVED: "Prejeto",
        IN_PROGRESS: "V obdelavi",
        PARTIALLY_SENT: "Delno poslano",
        SENT: "Poslano",
        FINISHED: "Zaključeno",
        CANCELLED: "Preklicano",
        REFUNDED_RETURNED: "Povrnjeno",
    }

    # Only consulted when STRICT_STATUS_TRANSITIONS is enabled
    TRANSITIONS = {
        RECEIVED: {IN_PROGRESS, CANCELLED, REFUNDED_RETURNED},
        IN_PROGRESS: {SENT, PARTIALLY_SENT, CANCELLED, REFUNDED_RETURNED},
        PARTIALLY_SENT: {SENT, FINISHED, CANCELLED, REFUNDED_RETURNED},
        SENT: {FINISHED, CANCELLED, REFUNDED_RETURNED},
        CANCELLED: {REFUNDED_RETURNED},
        REFUNDED_RETURNED: {CANCELLED},
        FINISHED: set(),
    }

    @classmethod
    def all_statuses(cls) -> list[str]:
        return list(cls.STATUS_LABELS.keys())

    @classmethod
    def is_valid(cls, status: str) -> bool:
        return status in cls.STATUS_LABELS

    @classmethod
    def get_label(cls, status: str) -> str:
        """Admin label; unknown values are shown as stored."""
        return cls.STATUS_LABELS.get(status, status)

    @classmethod
    def can_transition(cls, current_status: str | None, new_status: str) -> bool:
        if current_status is None or current_status == new_status:
            return True
        if current_status not in cls.TRANSITIONS:
            # rows carrying an unknown value can always be corrected
            return True
        return new_status in cls.TRANSITIONS[current_status]


class PaymentStatus:
    """Payment status constants"""

    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"

    STATUS_LABELS = {
        UNPAID: "Neplačano",
        PAID: "Plačano",
        REFUNDED: "Povrnjeno",
    }

    @classmethod
    def all_statuses(cls) -> list[str]:
        return list(cls.STATUS_LABELS.keys())

    @classmethod
    def is_valid(cls, status) -> bool:
        return isinstance(status, str) and status in cls.STATUS_LABELS

    @classmethod
    def get_label(cls, status: str | None) -> str:
        if status and cls.is_valid(status):
            return cls.STATUS_LABELS[status]
        return cls.STATUS_LABELS[cls.UNPAID]


class CustomerType:
    INDIVIDUAL = "individual"
    COMPANY = "company"
    SCHOOL = "school"

    TYPE_LABELS = {
        INDIVIDUAL: "Fiz. oseba",
        COMPANY: "Podjetje",
        SCHOOL: "Šola",
    }

    @classmethod
    def get_label(cls, customer_type: str) -> str:
        return cls.TYPE_LABELS.get(customer_type, customer_type)


class DocumentType:
    ORDER_SUMMARY = "order_summary"
    PREDRACUN = "predracun"
    DOBAVNICA = "dobavnica"
    INVOICE = "invoice"
    PURCHASE_ORDER = "purchase_order"

    TYPE_LABELS = {
        ORDER_SUMMARY: "Povzetek",
        PREDRACUN: "Predračun",
        DOBAVNICA: "Dobavnica",
        INVOICE: "Račun",
        PURCHASE_ORDER: "Naročilnica",
    }

    @classmethod
    def normalize(cls, document_type: str) -> str:
        # "offer" was renamed to the order summary
        if document_type == "offer":
            return cls.ORDER_SUMMARY
        return document_type

    @classmethod
    def get_label(cls, document_type: str) -> str:
        return cls.TYPE_LABELS.get(cls.normalize(document_type), document_type)


class ArchiveItemType:
    ORDER = "order"
    PDF = "pdf"
    ALL = "all"

    @classmethod
    def normalize_filter(cls, value: str | None) -> str:
        """Unknown or missing filters list everything."""
        return value if value in (cls.ORDER, cls.PDF) else cls.ALL


class AdminPaths:
    """Admin pages whose cached payloads are invalidated after writes"""

    ORDERS = "/admin/orders"
    DELETED_ARCHIVE = "/admin/arhiv-izbrisanih"

    @staticmethod
    def order_detail(order_id: int) -> str:
        return f"/admin/orders/{order_id}"


class Messages:
    """User-facing (Slovenian) messages returned by the admin API"""

    INVALID_ORDER_ID = "Neveljaven ID naročila."
    INVALID_ID = "Neveljaven ID."
    ORDER_NOT_FOUND = "Naročilo ne obstaja."
    DOCUMENT_NOT_FOUND = "Dokument ne obstaja."
    STATUS_MISSING = "Status manjka."
    STATUS_INVALID = "Neveljaven status naročila."
    STATUS_TRANSITION_NOT_ALLOWED = "Prehod statusa ni dovoljen."
    PAYMENT_STATUS_INVALID = "Manjka ali je neveljaven status plačila."
    IDS_MISSING = "Ni izbranih zapisov."
    UNAUTHORIZED = "Nedovoljen dostop."
    SERVER_ERROR = "Napaka na strežniku."
    DRAFT_NOT_CREATED = "Osnutka ni bilo mogoče ustvariti."
    INVALID_PAGINATION = "Neveljavni parametri strani."
    INVALID_REQUEST = "Neveljavna zahteva."


DRAFT_ORDER_DEFAULTS = {
    "customer_type": CustomerType.COMPANY,
    "contact_name": "Osnutek",
    "email": "draft@atehna.si",
    "status": OrderStatus.RECEIVED,
    "payment_status": PaymentStatus.UNPAID,
}


def to_display_order_number(order_number: str | None) -> str | None:
    """ORD-xxxx order numbers are displayed as N-xxxx."""
    if not order_number:
        return order_number
    if order_number.upper().startswith("ORD-"):
        return f"N-{order_number[4:]}"
    return order_number
