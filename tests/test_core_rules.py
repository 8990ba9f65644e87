"""Status tables, labels, identifiers and storage keys."""
import pytest

from atehna_oms.core.constants import (
    ArchiveItemType,
    DocumentType,
    OrderStatus,
    PaymentStatus,
    to_display_order_number,
)
from atehna_oms.core.exceptions import InvalidIdentifierError, InvalidPaginationError
from atehna_oms.connections.database import normalize_database_url
from atehna_oms.services.boto3_service import DocumentStorage
from atehna_oms.utils.datetime_helpers import format_datetime_local
from atehna_oms.validations.orders import OrderListValidator, parse_identifier, parse_order_id


@pytest.mark.parametrize("current, new, allowed", [
    ("received", "in_progress", True),
    ("received", "sent", False),
    ("in_progress", "partially_sent", True),
    ("sent", "finished", True),
    ("sent", "cancelled", True),
    ("finished", "cancelled", False),
    ("finished", "finished", True),
    (None, "sent", True),
    ("unknown_value", "received", True),
])
def test_can_transition(current, new, allowed):
    assert OrderStatus.can_transition(current, new) is allowed


def test_labels():
    assert OrderStatus.get_label("refunded_returned") == "Povrnjeno"
    assert OrderStatus.get_label("mystery") == "mystery"
    assert PaymentStatus.get_label(None) == "Neplačano"
    assert PaymentStatus.get_label("refunded") == "Povrnjeno"
    assert DocumentType.get_label("offer") == "Povzetek"


def test_payment_status_values():
    assert PaymentStatus.all_statuses() == ["unpaid", "paid", "refunded"]
    assert not PaymentStatus.is_valid(None)
    assert not PaymentStatus.is_valid(1)


@pytest.mark.parametrize("value, expected", [
    ("ORD-1042", "N-1042"),
    ("ord-7", "N-7"),
    ("#15", "#15"),
    ("", ""),
    (None, None),
])
def test_display_order_number(value, expected):
    assert to_display_order_number(value) == expected


def test_archive_filter():
    assert ArchiveItemType.normalize_filter("pdf") == "pdf"
    assert ArchiveItemType.normalize_filter(None) == "all"
    assert ArchiveItemType.normalize_filter("images") == "all"


@pytest.mark.parametrize("raw", ["12", " 12 ", 12])
def test_parse_identifier(raw):
    assert parse_identifier(raw) == 12


@pytest.mark.parametrize("raw", ["", None, "0", "-1", "1e3", "abc", "1.0"])
def test_parse_identifier_rejects(raw):
    with pytest.raises(InvalidIdentifierError):
        parse_order_id(raw)


def test_page_size_bounds():
    validator = OrderListValidator(max_page_size=100)
    validator.validate_page_size(100, 1)
    with pytest.raises(InvalidPaginationError):
        validator.validate_page_size(101, 1)
    with pytest.raises(InvalidPaginationError):
        validator.validate_page_size(10, 0)


def test_object_key():
    assert DocumentStorage.object_key("/orders/1/a.pdf", "https://x/other.pdf") == "orders/1/a.pdf"
    assert DocumentStorage.object_key(None, "https://files.atehna.si/orders/1/a.pdf") == "orders/1/a.pdf"
    assert DocumentStorage.object_key(None, None) is None


def test_disabled_storage_skips_delete():
    assert DocumentStorage().delete_object("orders/1/a.pdf") is False


def test_normalize_database_url():
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_database_url("sqlite:///:memory:") == "sqlite:///:memory:"


def test_local_datetime_format():
    from datetime import datetime, timezone
    # 12:05 UTC is 14:05 in Ljubljana during summer time
    assert format_datetime_local(datetime(2026, 7, 17, 12, 5, tzinfo=timezone.utc)) == "17. 7. 2026, 14:05"
