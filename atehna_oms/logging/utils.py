"""
Logging utilities for Atehna OMS (FastAPI)
"""
import logging

from atehna_oms.logging.config import LoggingConfig
from atehna_oms.logging.handlers import get_app_handlers, get_audit_handler
from atehna_oms.logging.filters import RequestContextFilter, BusinessContextFilter
from atehna_oms.logging.slack_handler import slack_handler


def get_app_logger(name: str = 'atehna_oms'):
    logger = logging.getLogger(name)
    if not logger.handlers:
        for handler in get_app_handlers(name.replace('.', '_')):
            # handlers are shared between loggers, filters go on once
            if not handler.filters:
                handler.addFilter(RequestContextFilter())
                handler.addFilter(BusinessContextFilter())
            logger.addHandler(handler)
        logger.addHandler(slack_handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def init_audit_logger():
    logger = logging.getLogger('atehna_oms.audit')
    if not logger.handlers:
        handler = get_audit_handler()
        if not handler.filters:
            handler.addFilter(RequestContextFilter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def initialize_logging():
    is_valid, message = LoggingConfig.is_valid_config()
    if not is_valid:
        raise RuntimeError(f"Invalid logging configuration: {message}")
    get_app_logger("atehna_oms").info(f"logging_initialized | log_dir={LoggingConfig.LOG_DIR}")
