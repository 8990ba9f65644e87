"""Deleted archive: soft-delete, listing, restore, permanent purge and cleanup."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from atehna_oms.core.constants import Messages


def _archive(client, item_type="all"):
    r = client.get("/api/admin/archive", params={"type": item_type})
    assert r.status_code == 200
    return r.json()["entries"]


def _order_ids(client):
    r = client.get("/api/admin/orders")
    assert r.status_code == 200
    return [order["id"] for order in r.json()["orders"]]


@pytest.mark.parametrize("deleted_at", [
    datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc),
    datetime(2026, 2, 28, 23, 59, 59, 999000, tzinfo=timezone.utc),
    datetime(2026, 3, 29, 1, 30, tzinfo=timezone.utc),
    datetime(2026, 10, 25, 0, 59, 59, tzinfo=timezone.utc),
    datetime(2028, 2, 29, 12, 0, tzinfo=timezone.utc),
])
def test_expires_at_is_deleted_at_plus_60_days(archive_service, make_order, deleted_at):
    order_id = make_order(deleted_at=deleted_at)
    archive_service.record_deleted_archive_entry("order", order_id, "label", deleted_at=deleted_at)

    entries = archive_service.fetch_archive_entries("all")
    assert len(entries) == 1
    entry = entries[0]
    assert entry["deleted_at"] == deleted_at
    assert entry["expires_at"] - entry["deleted_at"] == timedelta(days=60)


def test_record_entry_requires_document_for_pdf(archive_service, make_order):
    order_id = make_order()
    with pytest.raises(ValueError):
        archive_service.record_deleted_archive_entry("pdf", order_id, "label")
    with pytest.raises(ValueError):
        archive_service.record_deleted_archive_entry("invoice", order_id, "label")


def test_failed_archive_insert_rolls_back_soft_delete(client: TestClient, make_order, monkeypatch):
    order_id = make_order()
    archive_repository = client.app.state.archive_service.archive_repository

    def broken_insert(*args, **kwargs):
        raise RuntimeError("archive table unavailable")

    monkeypatch.setattr(archive_repository, "insert_entry", broken_insert)
    r = client.delete(f"/api/admin/orders/{order_id}")
    assert r.status_code == 500
    monkeypatch.undo()

    assert order_id in _order_ids(client)
    assert client.get(f"/api/admin/orders/{order_id}").status_code == 200
    assert _archive(client) == []


def test_delete_order_42_then_restore(client: TestClient, make_order):
    make_order(id=42, order_number="ORD-42", contact_name="Osnovna šola Trnovo")

    r = client.delete("/api/admin/orders/42")
    assert r.status_code == 200
    assert r.json() == {"success": True}

    entries = _archive(client)
    assert len(entries) == 1
    entry = entries[0]
    assert entry["item_type"] == "order"
    assert entry["order_id"] == 42
    assert entry["label"] == "ORD-42 · Osnovna šola Trnovo"
    assert entry["payload"] == {"order_number": "ORD-42"}
    deleted_at = datetime.fromisoformat(entry["deleted_at"])
    expires_at = datetime.fromisoformat(entry["expires_at"])
    assert expires_at - deleted_at == timedelta(days=60)
    assert 42 not in _order_ids(client)
    assert client.get("/api/admin/orders/42").status_code == 404

    r = client.patch("/api/admin/archive", json={"ids": [entry["id"]]})
    assert r.status_code == 200
    assert r.json() == {"success": True, "restoredCount": 1}
    assert _archive(client) == []
    assert 42 in _order_ids(client)


def test_deleting_twice_creates_one_entry(client: TestClient, make_order):
    order_id = make_order()
    assert client.delete(f"/api/admin/orders/{order_id}").status_code == 200
    assert client.delete(f"/api/admin/orders/{order_id}").status_code == 200
    assert len(_archive(client)) == 1


def test_delete_missing_order(client: TestClient):
    r = client.delete("/api/admin/orders/999")
    assert r.status_code == 404
    assert r.json()["message"] == Messages.ORDER_NOT_FOUND


@pytest.mark.parametrize("bad_id", ["abc", "0", "-3", "1.5"])
def test_delete_order_bad_id(client: TestClient, bad_id):
    r = client.delete(f"/api/admin/orders/{bad_id}")
    assert r.status_code == 400
    assert r.json()["message"] == Messages.INVALID_ORDER_ID


def test_archive_type_filter_and_order(client: TestClient, make_order, make_document):
    first = make_order()
    second = make_order()
    document_id = make_document(second)

    assert client.delete(f"/api/admin/orders/{first}").status_code == 200
    assert client.delete(f"/api/admin/orders/{second}/documents/{document_id}").status_code == 200

    all_entries = _archive(client)
    assert [entry["item_type"] for entry in all_entries] == ["pdf", "order"]
    assert [entry["item_type"] for entry in _archive(client, "order")] == ["order"]
    pdf_entries = _archive(client, "pdf")
    assert len(pdf_entries) == 1
    assert pdf_entries[0]["document_id"] == document_id
    assert pdf_entries[0]["order_id"] == second
    assert pdf_entries[0]["payload"]["blob_pathname"] == f"orders/{second}/predracun.pdf"
    # unknown filters list everything
    assert len(_archive(client, "everything")) == 2


def test_document_soft_delete_and_restore(client: TestClient, make_order, make_document):
    order_id = make_order()
    document_id = make_document(order_id)

    r = client.delete(f"/api/admin/orders/{order_id}/documents/{document_id}")
    assert r.status_code == 200
    assert client.get(f"/api/admin/orders/{order_id}/documents").json()["documents"] == []

    entry_id = _archive(client, "pdf")[0]["id"]
    r = client.patch("/api/admin/archive", json={"ids": [entry_id]})
    assert r.json() == {"success": True, "restoredCount": 1}
    documents = client.get(f"/api/admin/orders/{order_id}/documents").json()["documents"]
    assert [document["id"] for document in documents] == [document_id]


def test_document_of_other_order_is_not_found(client: TestClient, make_order, make_document):
    order_id = make_order()
    other_order_id = make_order()
    document_id = make_document(other_order_id)
    r = client.delete(f"/api/admin/orders/{order_id}/documents/{document_id}")
    assert r.status_code == 404
    assert r.json()["message"] == Messages.DOCUMENT_NOT_FOUND


def test_purge_document_removes_row_and_stored_file(client: TestClient, database, s3_client, make_order, make_document):
    order_id = make_order()
    document_id = make_document(order_id)
    client.delete(f"/api/admin/orders/{order_id}/documents/{document_id}")
    entry_id = _archive(client)[0]["id"]

    r = client.request("DELETE", "/api/admin/archive", json={"ids": [entry_id]})
    assert r.status_code == 200
    assert r.json() == {"success": True, "deletedCount": 1}
    assert _archive(client) == []
    assert s3_client.deleted == [("atehna-documents", f"orders/{order_id}/predracun.pdf")]
    remaining = database.execute_raw_sql_readonly("SELECT id FROM order_documents WHERE id = :id", {"id": document_id})
    assert remaining == []


def test_purge_order_removes_its_rows_and_keeps_payment_log(client: TestClient, database, make_order, make_document):
    order_id = make_order()
    document_id = make_document(order_id)
    client.post(f"/api/admin/orders/{order_id}/payment-status", json={"status": "paid"})
    client.delete(f"/api/admin/orders/{order_id}/documents/{document_id}")
    client.delete(f"/api/admin/orders/{order_id}")
    order_entry = _archive(client, "order")[0]

    r = client.request("DELETE", "/api/admin/archive", json={"ids": [order_entry["id"]]})
    assert r.status_code == 200
    # the document's own archive entry goes with the order and is counted
    assert r.json()["deletedCount"] == 2
    assert _archive(client) == []
    for table in ("orders", "order_items", "order_documents"):
        column = "id" if table == "orders" else "order_id"
        rows = database.execute_raw_sql_readonly(f"SELECT 1 FROM {table} WHERE {column} = :id", {"id": order_id})
        assert rows == [], table

    logs = database.execute_raw_sql_readonly(
        "SELECT previous_status, new_status FROM order_payment_logs WHERE order_id = :id", {"id": order_id}
    )
    assert logs == [{"previous_status": "unpaid", "new_status": "paid"}]


def test_cleanup_counts_document_entries_purged_with_their_order(archive_service, make_order, make_document):
    order_id = make_order()
    document_id = make_document(order_id)
    now = datetime.now(timezone.utc)
    archive_service.record_deleted_archive_entry(
        "pdf", order_id, "Predračun", document_id=document_id, deleted_at=now - timedelta(days=61)
    )
    archive_service.record_deleted_archive_entry("order", order_id, "ORD-1001", deleted_at=now - timedelta(days=62))

    assert archive_service.cleanup_expired_archive_entries() == 2
    assert archive_service.fetch_archive_entries() == []


def test_restore_after_purge_is_a_no_op(client: TestClient, make_order):
    kept = make_order()
    purged = make_order()
    client.delete(f"/api/admin/orders/{kept}")
    client.delete(f"/api/admin/orders/{purged}")
    entries = {entry["order_id"]: entry["id"] for entry in _archive(client)}

    client.request("DELETE", "/api/admin/archive", json={"ids": [entries[purged]]})
    r = client.patch("/api/admin/archive", json={"ids": [entries[purged], entries[kept]]})
    assert r.status_code == 200
    assert r.json() == {"success": True, "restoredCount": 1}
    assert kept in _order_ids(client)
    assert purged not in _order_ids(client)


def test_restore_when_original_row_is_gone(client: TestClient, database, make_order):
    order_id = make_order()
    client.delete(f"/api/admin/orders/{order_id}")
    entry_id = _archive(client)[0]["id"]
    with database.transaction() as conn:
        conn.execute(text("DELETE FROM order_items WHERE order_id = :id"), {"id": order_id})
        conn.execute(text("DELETE FROM orders WHERE id = :id"), {"id": order_id})

    r = client.patch("/api/admin/archive", json={"ids": [entry_id]})
    assert r.status_code == 200
    assert r.json()["restoredCount"] == 0
    assert _archive(client) == []


@pytest.mark.parametrize("method", ["PATCH", "DELETE"])
def test_batch_requires_ids(client: TestClient, method):
    r = client.request(method, "/api/admin/archive", json={"ids": []})
    assert r.status_code == 400
    assert r.json()["message"] == Messages.IDS_MISSING

    r = client.request(method, "/api/admin/archive", json={"ids": ["x"]})
    assert r.status_code == 400


def test_partial_restore_failure_reports_counts(client: TestClient, make_order, monkeypatch):
    good = make_order()
    bad = make_order()
    client.delete(f"/api/admin/orders/{good}")
    client.delete(f"/api/admin/orders/{bad}")
    entries = {entry["order_id"]: entry["id"] for entry in _archive(client)}

    orders_repository = client.app.state.archive_service.orders_repository
    original_restore = orders_repository.restore

    def failing_restore(conn, order_id):
        if order_id == bad:
            raise RuntimeError("disk full")
        return original_restore(conn, order_id)

    monkeypatch.setattr(orders_repository, "restore", failing_restore)

    r = client.patch("/api/admin/archive", json={"ids": [entries[bad], entries[good]]})
    assert r.status_code == 500
    j = r.json()
    assert j["restoredCount"] == 1
    assert j["failedIds"] == [entries[bad]]
    # the failed id rolled back: its entry is still listed, the other one is gone
    assert [entry["id"] for entry in _archive(client)] == [entries[bad]]
    assert good in _order_ids(client)


def test_cleanup_requires_secret(client: TestClient):
    r = client.post("/api/admin/archive/cleanup")
    assert r.status_code == 401
    assert r.json()["message"] == Messages.UNAUTHORIZED

    r = client.post("/api/admin/archive/cleanup", headers={"Authorization": "Bearer wrong"})
    assert r.status_code == 401


def test_cleanup_purges_expired_entries_once(client: TestClient, archive_service, make_order, cron_headers):
    expired_order = make_order()
    fresh_order = make_order()
    long_ago = datetime.now(timezone.utc) - timedelta(days=61)
    archive_service.record_deleted_archive_entry("order", expired_order, "old", deleted_at=long_ago)
    client.delete(f"/api/admin/orders/{fresh_order}")

    r = client.post("/api/admin/archive/cleanup", headers=cron_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "deletedCount": 1}

    r = client.post("/api/admin/archive/cleanup", headers=cron_headers)
    assert r.json() == {"success": True, "deletedCount": 0}
    assert [entry["order_id"] for entry in _archive(client)] == [fresh_order]


def test_cleanup_boundary_is_inclusive(archive_service, database, make_order):
    order_id = make_order()
    deleted_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
    archive_service.record_deleted_archive_entry("order", order_id, "label", deleted_at=deleted_at)

    assert archive_service.cleanup_expired_archive_entries(now=deleted_at + timedelta(days=60) - timedelta(seconds=1)) == 0
    assert archive_service.cleanup_expired_archive_entries(now=deleted_at + timedelta(days=60)) == 1
    rows = database.execute_raw_sql_readonly("SELECT id FROM orders WHERE id = :id", {"id": order_id})
    assert rows == []

