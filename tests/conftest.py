"""Pytest fixtures: in-memory SQLite database, fake Redis and S3, test client."""
import fnmatch
import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Must be set before atehna_oms is imported (settings are read at import time)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="atehna-oms-logs-"))
os.environ.setdefault("APPLICATION_ENVIRONMENT", "test")
os.environ.setdefault("SENTRY_ENABLED", "false")
os.environ.setdefault("ADMIN_PAGE_CACHE_ENABLED", "false")

import atehna_oms.models  # noqa: E402,F401
from atehna_oms.config.settings import AtehnaConfigs  # noqa: E402
from atehna_oms.connections.database import Base, Database  # noqa: E402
from atehna_oms.main import create_app  # noqa: E402
from atehna_oms.models import Order, OrderDocument, OrderItem  # noqa: E402
from atehna_oms.services.archive_service import ArchiveService  # noqa: E402
from atehna_oms.services.boto3_service import DocumentStorage  # noqa: E402
from atehna_oms.services.page_cache import AdminPageCache  # noqa: E402

CRON_SECRET = "test-cron-secret"


class FakeRedisJSON:
    """In-memory stand-in for RedisJSONWrapper with the same method surface."""

    def __init__(self):
        self.store = {}
        self.connected = True

    def set_with_ttl(self, key, data, ttl_seconds):
        self.store[key] = json.dumps(data, default=str)

    def get(self, key):
        data = self.store.get(key)
        return json.loads(data) if data else None

    def delete(self, key):
        return self.store.pop(key, None) is not None

    def keys(self, pattern='*'):
        return [key for key in self.store if fnmatch.fnmatchcase(key, pattern)]

    def delete_keys_with_prefix(self, prefix):
        matching_keys = [key for key in self.store if key.startswith(prefix)]
        for key in matching_keys:
            self.delete(key)
        return len(matching_keys)


class FakeS3Client:
    def __init__(self):
        self.deleted = []

    def delete_object(self, Bucket, Key):
        self.deleted.append((Bucket, Key))
        return {}


@pytest.fixture
def database():
    db = Database.from_url("sqlite:///:memory:")
    Base.metadata.create_all(db.engine)
    yield db
    db.close()


@pytest.fixture
def redis_client():
    return FakeRedisJSON()


@pytest.fixture
def page_cache(redis_client):
    return AdminPageCache(redis_client, prefix="admin_page", ttl_seconds=300)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def document_storage(s3_client):
    return DocumentStorage("atehna-documents", s3_client)


@pytest.fixture
def configs():
    settings = AtehnaConfigs()
    settings.DEBUG = True
    settings.CRON_SECRET = CRON_SECRET
    settings.STRICT_STATUS_TRANSITIONS = False
    settings.ADMIN_ORDERS_PAGE_SIZE = 50
    settings.ADMIN_ORDERS_MAX_PAGE_SIZE = 100
    return settings


@pytest.fixture
def archive_service(database, page_cache, document_storage):
    return ArchiveService(database, page_cache=page_cache, document_storage=document_storage)


@pytest.fixture
def app(database, page_cache, document_storage, configs):
    return create_app(database=database, page_cache=page_cache, document_storage=document_storage, configs=configs)


@pytest.fixture
def client(app):
    """TestClient; the lifespan wires the services onto app.state."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def cron_headers():
    return {"Authorization": f"Bearer {CRON_SECRET}"}


def _utc(minutes_ago=0):
    return datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)


@pytest.fixture
def make_order(database):
    """Insert an order row directly; returns its id."""
    counter = {"n": 0}

    def _make_order(**fields):
        counter["n"] += 1
        values = {
            "order_number": f"ORD-{1000 + counter['n']}",
            "customer_type": "school",
            "contact_name": "Ana Novak",
            "email": "ana@example.si",
            "status": "received",
            "payment_status": "unpaid",
            "subtotal": 100,
            "tax": 22,
            "total": 122,
            "created_at": _utc(minutes_ago=100 - counter["n"]),
            "updated_at": _utc(),
        }
        values.update(fields)
        with database.transaction() as session:
            order = Order(**values)
            session.add(order)
            session.flush()
            order_id = order.id
            session.add(OrderItem(order_id=order_id, sku="ZV-01", name="Zvezek A4", unit="kos",
                                  quantity=2, unit_price=50, line_total=100))
        return order_id

    return _make_order


@pytest.fixture
def make_document(database):
    def _make_document(order_id, **fields):
        values = {
            "order_id": order_id,
            "type": "predracun",
            "filename": f"predracun-{order_id}.pdf",
            "blob_url": f"https://files.atehna.si/orders/{order_id}/predracun.pdf",
            "blob_pathname": f"orders/{order_id}/predracun.pdf",
            "created_at": _utc(),
        }
        values.update(fields)
        with database.transaction() as session:
            document = OrderDocument(**values)
            session.add(document)
            session.flush()
            return document.id

    return _make_document
