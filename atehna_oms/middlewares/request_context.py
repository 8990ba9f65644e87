"""
Request context utilities for FastAPI using contextvars
"""
from contextvars import ContextVar
import uuid


class RequestContext:
    def __init__(self):
        self.request_id: str | None = None
        self.request_method: str | None = None
        self.request_path: str | None = None
        self.order_id: int | None = None
        self.archive_entry_id: int | None = None


_request_context_var: ContextVar[RequestContext] = ContextVar("request_context", default=RequestContext())


class _RequestContextProxy:
    def __getattr__(self, name):
        return getattr(_request_context_var.get(), name)

    def __setattr__(self, name, value):
        setattr(_request_context_var.get(), name, value)


request_context = _RequestContextProxy()


def clear_request_context():
    _request_context_var.set(RequestContext())


def create_request_id() -> str:
    # fresh context per request so identifiers never leak between requests
    _request_context_var.set(RequestContext())
    rid = str(uuid.uuid4())
    request_context.request_id = rid
    return rid
