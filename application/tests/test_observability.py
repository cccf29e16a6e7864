import json
import logging

from app.config.sentry import before_send_filter
from app.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter
from app.logging.slack_handler import SlackErrorHandler
from app.middlewares.logging_middleware import AuditMiddleware
from app.middlewares.request_context import clear_request_context, create_request_id, request_context


def _record(msg="hello", **extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_sentry_filter_scrubs_otp_and_phone():
    event = {
        "request": {
            "headers": {"Authorization": "Bearer x", "Accept": "application/json"},
            "data": {"phoneNumber": "0241234567", "otp": "123456", "channel": "web"},
        }
    }
    scrubbed = before_send_filter(event, None)["request"]
    assert scrubbed["headers"] == {"Authorization": "[Filtered]", "Accept": "application/json"}
    assert scrubbed["data"] == {"phoneNumber": "[Filtered]", "otp": "[Filtered]", "channel": "web"}


def test_app_formatter_emits_json_with_context():
    entry = json.loads(AppLogsJSONFormatter().format(_record(request_id="rid-1", phone_number="+233****4567")))
    assert entry["message"] == "hello"
    assert entry["request_id"] == "rid-1"
    assert entry["phone_number"] == "+233****4567"


def test_audit_formatter_drops_message():
    entry = json.loads(AuditLogsJSONFormatter().format(_record(status_code=200, request={"BODY": {}})))
    assert "message" not in entry
    assert entry["status_code"] == 200


def test_audit_body_masks_code_and_phone():
    middleware = AuditMiddleware(app=None)
    masked = middleware._mask_body({"phoneNumber": "0241234567", "otp": "123456", "note": "x"})
    assert masked == {"phoneNumber": "+233****4567", "otp": "******", "note": "x"}
    assert middleware._mask_headers({"Authorization": "Bearer t", "X": "1"}) == {"Authorization": "****", "X": "1"}


def test_request_context_is_fresh_per_request():
    rid = create_request_id()
    request_context.phone_number = "+233****4567"
    assert request_context.request_id == rid
    clear_request_context()
    assert request_context.request_id is None
    assert request_context.phone_number is None


def test_slack_handler_disabled_without_webhook():
    handler = SlackErrorHandler(webhook="")
    assert not handler.enabled
    handler.emit(_record())
    text = SlackErrorHandler(webhook="https://hooks.example/x").build_text(_record("it broke"))
    assert "```it broke```" in text
