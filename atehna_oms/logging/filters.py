"""
Basic Logging Filters for Atehna OMS (FastAPI)
"""
import logging
import uuid
from atehna_oms.middlewares.request_context import request_context


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.request_id = getattr(request_context, 'request_id', None) or str(uuid.uuid4())
        record.request_method = getattr(request_context, 'request_method', '') or ''
        record.request_path = getattr(request_context, 'request_path', '') or ''
        return True


class BusinessContextFilter(logging.Filter):
    def filter(self, record):
        record.order_id = getattr(request_context, 'order_id', '') or ''
        record.archive_entry_id = getattr(request_context, 'archive_entry_id', '') or ''
        return True
