"""
Logging Handlers for Atehna OMS (FastAPI)
Local JSON-lines files, optionally mirrored to stdout.
"""
import logging
import os
import sys

from atehna_oms.logging.config import LoggingConfig
from atehna_oms.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter

_handlers = {}


def get_local_file_handler(name: str = 'app'):
    if name in _handlers:
        return _handlers[name]
    os.makedirs(LoggingConfig.LOG_DIR, exist_ok=True)
    handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIR, f'{name}.log'), delay=True)
    formatter = AuditLogsJSONFormatter() if name.startswith('audit') else AppLogsJSONFormatter()
    handler.setFormatter(formatter)
    _handlers[name] = handler
    return handler


def get_stdout_handler():
    if 'stdout' not in _handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(AppLogsJSONFormatter())
        _handlers['stdout'] = handler
    return _handlers['stdout']


def get_app_handlers(name: str = 'app'):
    handlers = [get_local_file_handler(name)]
    if LoggingConfig.LOG_TO_STDOUT:
        handlers.append(get_stdout_handler())
    return handlers


def get_audit_handler():
    return get_local_file_handler('audit_logs')
