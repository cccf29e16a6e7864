from urllib.parse import parse_qs

import httpx
import pytest

from app.integrations.twilio_sms import LogSMSAction, TwilioSMSAction, build_sms_gateway


def _gateway(handler, **overrides):
    options = dict(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15005550006",
        transport=httpx.MockTransport(handler),
    )
    options.update(overrides)
    return TwilioSMSAction(**options)


async def test_send_posts_form_to_messages_endpoint():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(201, json={"sid": "SM42"})

    result = await _gateway(handler).send_otp_sms("+233241234567", "hello")

    assert result.success
    assert result.message_sid == "SM42"
    assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert seen["auth"].startswith("Basic ")
    assert seen["form"] == {"To": ["+233241234567"], "From": ["+15005550006"], "Body": ["hello"]}


async def test_provider_error_is_a_failed_send():
    def handler(request):
        return httpx.Response(400, json={"message": "The 'To' number is not a valid phone number."})

    result = await _gateway(handler).send_otp_sms("+233241234567", "hello")

    assert not result.success
    assert result.message_sid is None
    assert "not a valid phone number" in result.message


async def test_transport_error_is_a_failed_send():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    result = await _gateway(handler).send_otp_sms("+233241234567", "hello")

    assert not result.success
    assert result.message == "Failed to connect to SMS service"


async def test_missing_credentials_never_call_out():
    def handler(request):
        pytest.fail("no request expected")

    result = await _gateway(handler, auth_token="").send_otp_sms("+233241234567", "hello")
    assert not result.success


async def test_log_backend_always_succeeds():
    gateway = LogSMSAction()
    first = await gateway.send_otp_sms("+233241234567", "code 123456")
    second = await gateway.send_otp_sms("+233241234567", "code 654321")
    assert first.success and second.success
    assert first.message_sid != second.message_sid


class _Configs:
    SMS_PROVIDER = "twilio"
    TWILIO_ACCOUNT_SID = "AC123"
    TWILIO_AUTH_TOKEN = "secret"
    TWILIO_PHONE_NUMBER = "+15005550006"
    TWILIO_BASE_URL = "https://example.test/2010-04-01/"
    SMS_TIMEOUT_SECONDS = 5


def test_build_sms_gateway():
    gateway = build_sms_gateway(_Configs())
    assert isinstance(gateway, TwilioSMSAction)
    assert gateway.base_url == "https://example.test/2010-04-01"
    assert gateway.timeout == 5

    configs = _Configs()
    configs.SMS_PROVIDER = "log"
    assert isinstance(build_sms_gateway(configs), LogSMSAction)

    configs.SMS_PROVIDER = "carrier-pigeon"
    with pytest.raises(ValueError):
        build_sms_gateway(configs)
