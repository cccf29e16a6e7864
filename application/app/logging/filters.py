"""
Basic Logging Filters for the Singlespine OTP service (FastAPI)
"""
import logging
import uuid
from app.middlewares.request_context import request_context


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.request_id = getattr(request_context, 'request_id', None) or str(uuid.uuid4())
        # Inject HTTP method and path if present in context
        record.request_method = getattr(request_context, 'request_method', '') or ''
        record.request_path = getattr(request_context, 'request_path', '') or ''
        # Inject version headers if present in context
        record.app_version = getattr(request_context, 'app_version', '') or ''
        record.web_version = getattr(request_context, 'web_version', '') or ''
        return True


class OTPContextFilter(logging.Filter):
    def filter(self, record):
        # Only ever the masked form of the number
        record.phone_number = getattr(request_context, 'phone_number', '') or ''
        return True
