"""
Audit and Request Logging Middleware for FastAPI (Singlespine OTP)
"""
import json
import socket
import time
from datetime import datetime

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.logging.utils import get_app_logger, init_audit_logger
from app.logging.config import LoggingConfig
from app.middlewares.request_context import create_request_id, request_context, clear_request_context
from app.dto.phone_validations import mask_phone_number

# settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

APP_NAME = configs.APP_NAME
APP_VERSION = configs.APP_VERSION

# Body fields that must never reach the audit stream in clear text
MASKED_FIELDS = {'otp', 'code', 'otp_code'}
PHONE_FIELDS = {'phoneNumber', 'phone_number', 'phone'}


class AuditMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.logger = get_app_logger('app.logging')
        self.exclude_audit_paths = exclude_paths or ['/health', '/docs', '/redoc', '/openapi.json']
        self.hostname = socket.gethostname()
        self.app_name = APP_NAME
        self.version = APP_VERSION

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = create_request_id()
        start_time = time.time()
        timestamp = datetime.now().isoformat()

        body_bytes = await request.body()

        request_context.module_name = None
        request_context.request_method = request.method
        request_context.request_path = request.url.path
        request_context.app_version = request.headers.get('x-app-version', '')
        request_context.web_version = request.headers.get('x-web-version', '')

        should_audit = LoggingConfig.AUDIT_LOGGING_ENABLED and not any(
            request.url.path.startswith(p) for p in self.exclude_audit_paths
        )

        try:
            response = await call_next(request)
            duration = (time.time() - start_time) * 1000
            response.headers['X-Request-ID'] = request_id

            if should_audit:
                audit_data = self._build_audit_data(request, response, body_bytes, duration, request_id, timestamp)
                init_audit_logger().info("Audit log", extra=audit_data)
            return response
        except Exception as exc:
            duration = (time.time() - start_time) * 1000
            self.logger.error(
                f"Exception: {request.method} {request.url.path} - {exc.__class__.__name__} ({duration:.0f}ms)",
                exc_info=True,
            )
            if should_audit:
                audit_data = self._build_audit_data(request, Response(status_code=500), body_bytes, duration, request_id, timestamp)
                audit_data['exception'] = exc.__class__.__name__
                init_audit_logger().info("Audit log (exception)", extra=audit_data)
            raise
        finally:
            clear_request_context()

    def _mask_headers(self, headers) -> dict:
        """Replace any Authorization header value with '****'."""
        return {
            k: ('****' if k.lower() == 'authorization' else v)
            for k, v in headers.items()
        }

    def _mask_body(self, body_data):
        if not isinstance(body_data, dict):
            return body_data
        masked = {}
        for key, value in body_data.items():
            if key in MASKED_FIELDS:
                masked[key] = '******'
            elif key in PHONE_FIELDS and isinstance(value, str):
                masked[key] = mask_phone_number(value)
            else:
                masked[key] = value
        return masked

    def _build_audit_data(
        self,
        request: Request,
        response: Response,
        body_bytes: bytes,
        duration: float,
        request_id: str,
        timestamp: str,
    ) -> dict:
        try:
            if body_bytes and 'application/json' in request.headers.get('content-type', ''):
                body_data = self._mask_body(json.loads(body_bytes.decode('utf-8')))
            else:
                # non-JSON bodies are not recorded
                body_data = {}
        except (ValueError, UnicodeDecodeError):
            body_data = {}

        # response data: capture only for non-2xx and when flag is enabled
        status = getattr(response, 'status_code', 0)
        response_data = ''
        if LoggingConfig.CAPTURE_RESPONSE_BODY and not 200 <= status < 300:
            body = getattr(response, 'body', None)
            if body is not None and not hasattr(response, 'body_iterator'):
                response_data = body.decode('utf-8', errors='replace')[:1000]

        size_in_bytes = int(response.headers.get('content-length', 0) or 0)

        request_json = {
            "GET": dict(request.query_params),
            "BODY": body_data,
            "HEADERS": self._mask_headers(dict(request.headers)),
        }

        return {
            'duration': round(duration, 2),
            'header_referer': request.headers.get('referer', ''),
            'hostname': self.hostname,
            'app_name': self.app_name,
            'module_name': request_context.module_name,
            'request': request_json,
            'request_id': request_id,
            'request_method': request.method,
            'request_path': request.url.path,
            'response': response_data,
            'size_in_bytes': size_in_bytes,
            'status_code': status,
            'timestamp': timestamp,
            'version': self.version,
            'app_version': request_context.app_version,
            'web_version': request_context.web_version,
        }
