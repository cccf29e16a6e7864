"""
Logging Handlers for the Singlespine OTP service (FastAPI)
Stream handler by default, per-stream local files when LOG_TO_FILE is set.
"""
import logging
import os
import sys

from app.logging.config import LoggingConfig
from app.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter


_handlers = {}

def get_local_file_handler(name: str = 'app'):
    key = f"file:{name}"
    if key not in _handlers:
        os.makedirs(LoggingConfig.LOG_DIR, exist_ok=True)
        handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIR, f'{name}.log'))
        formatter = AuditLogsJSONFormatter() if name.startswith('audit') else AppLogsJSONFormatter()
        handler.setFormatter(formatter)
        _handlers[key] = handler
    return _handlers[key]


def get_stream_handler(name: str = 'app'):
    key = f"stream:{name}"
    if key not in _handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = AuditLogsJSONFormatter() if name.startswith('audit') else AppLogsJSONFormatter()
        handler.setFormatter(formatter)
        _handlers[key] = handler
    return _handlers[key]


def get_app_handler():
    if LoggingConfig.LOG_TO_FILE:
        return get_local_file_handler('app')
    return get_stream_handler('app')


def get_audit_handler():
    if LoggingConfig.LOG_TO_FILE:
        return get_local_file_handler('audit_logs')
    return get_stream_handler('audit_logs')
