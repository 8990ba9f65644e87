"""
JSON log formatters: one JSON object per line, with the request context
attached by the log filters.
"""
import json
import logging
from datetime import datetime

from atehna_oms.logging.config import LoggingConfig


class BaseJSONFormatter(logging.Formatter):
    """Shared envelope; subclasses name the record extras they copy."""

    extra_fields = ()
    include_message = True

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'environment': LoggingConfig.APPLICATION_ENVIRONMENT,
            'service': LoggingConfig.SERVICE_NAME,
        }
        if self.include_message:
            log_entry['message'] = record.getMessage()
            log_entry['module'] = record.module
            log_entry['line_number'] = record.lineno

        exception = record.exc_info[1] if record.exc_info else getattr(record, 'exception', None)
        if exception:
            log_entry['exception'] = str(exception)

        for field in self.extra_fields:
            log_entry[field] = getattr(record, field, '')
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class AppLogsJSONFormatter(BaseJSONFormatter):
    extra_fields = ('request_id', 'request_method', 'request_path', 'order_id', 'archive_entry_id')


class AuditLogsJSONFormatter(BaseJSONFormatter):
    """Audit records carry their data in extras; the message text is dropped."""

    include_message = False
    extra_fields = (
        'request_id', 'request_method', 'request_path', 'order_id', 'status_code', 'started_at',
        'duration', 'request', 'response', 'hostname', 'version',
    )
