"""
JSON Formatters for Singlespine OTP service logging (FastAPI)
"""
import json
import logging
from datetime import datetime

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

APPLICATION_ENVIRONMENT = configs.APPLICATION_ENVIRONMENT
SERVICE_NAME = configs.APP_NAME

class BaseJSONFormatter(logging.Formatter):
    """Basic JSON formatter"""

    def __init__(self):
        super().__init__()
        self.application_environment = APPLICATION_ENVIRONMENT

    def _base_entry(self, record):
        return {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line_number': record.lineno,
            'environment': self.application_environment,
            'service': SERVICE_NAME
        }

    def format(self, record):
        """Convert log record to JSON format"""
        log_entry = self._base_entry(record)
        log_entry['message'] = record.getMessage()

        if record.exc_info:
            log_entry['exception'] = str(record.exc_info[1])

        self.add_extra_fields(log_entry, record)
        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def add_extra_fields(self, log_entry, record):
        pass


class AppLogsJSONFormatter(BaseJSONFormatter):
    def add_extra_fields(self, log_entry, record):
        log_entry['request_id'] = getattr(record, 'request_id', '')
        log_entry['request_method'] = getattr(record, 'request_method', '')
        log_entry['request_path'] = getattr(record, 'request_path', '')
        log_entry['phone_number'] = getattr(record, 'phone_number', '')
        log_entry['app_version'] = getattr(record, 'app_version', '')
        log_entry['web_version'] = getattr(record, 'web_version', '')


class AuditLogsJSONFormatter(BaseJSONFormatter):
    def format(self, record):
        """Audit records carry their payload in extras; the message text is dropped."""
        log_entry = self._base_entry(record)

        if record.exc_info:
            log_entry['exception'] = str(record.exc_info[1])

        self.add_extra_fields(log_entry, record)
        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def add_extra_fields(self, log_entry, record):
        log_entry['request_id'] = getattr(record, 'request_id', '')

        # Meta/context
        log_entry['duration'] = getattr(record, 'duration', 0.0)
        log_entry['header_referer'] = getattr(record, 'header_referer', '')
        log_entry['hostname'] = getattr(record, 'hostname', '')
        log_entry['app_name'] = getattr(record, 'app_name', '')
        log_entry['module_name'] = getattr(record, 'module_name', '')

        # Request/Response (store serialized)
        request_data = getattr(record, 'request', None)
        response_data = getattr(record, 'response', None)
        log_entry['request'] = json.dumps(request_data, ensure_ascii=False, default=str) if request_data else ''
        log_entry['response'] = json.dumps(response_data, ensure_ascii=False, default=str) if response_data else ''

        # HTTP fields
        log_entry['request_method'] = getattr(record, 'request_method', '')
        log_entry['request_path'] = getattr(record, 'request_path', '')
        log_entry['size_in_bytes'] = getattr(record, 'size_in_bytes', 0)
        log_entry['status_code'] = getattr(record, 'status_code', 0)
        log_entry['version'] = getattr(record, 'version', '')
        log_entry['app_version'] = getattr(record, 'app_version', '')
        log_entry['web_version'] = getattr(record, 'web_version', '')
