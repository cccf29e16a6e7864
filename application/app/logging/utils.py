"""
Logging utilities for the Singlespine OTP service (FastAPI)
"""
import logging

from app.logging.config import LoggingConfig
from app.logging.handlers import get_app_handler, get_audit_handler
from app.logging.filters import RequestContextFilter, OTPContextFilter
from app.logging.slack_handler import slack_handler


def _level():
    return getattr(logging, LoggingConfig.LOG_LEVEL, logging.INFO)


def get_app_logger(name: str | None = None):
    logger = logging.getLogger(name or 'singlespine')
    if not logger.handlers:
        handler = get_app_handler()
        if not handler.filters:
            handler.addFilter(RequestContextFilter())
            handler.addFilter(OTPContextFilter())
        logger.addHandler(handler)
        logger.addHandler(slack_handler)
        logger.setLevel(_level())
        logger.propagate = False
    return logger


def init_audit_logger():
    logger = logging.getLogger('singlespine.audit')
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
    logger = get_app_logger('app.logging')
    if not is_valid:
        logger.warning(f"Logging configuration warning: {message}")
    logger.info("Logging system initialized (Singlespine OTP)")
