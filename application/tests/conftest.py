import os
import re
from datetime import datetime, timedelta, timezone

import pytest

# Settings are read at import time; pin them before the app is imported
os.environ.setdefault("SMS_PROVIDER", "log")
os.environ.setdefault("OTP_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("SENTRY_ENABLED", "false")
os.environ.setdefault("AUDIT_LOGGING_ENABLED", "true")
os.environ.setdefault("SLACK_WEBHOOK_URL", "")

from app.integrations.twilio_sms import SMSGateway, SMSSendResult  # noqa: E402
from app.repository.otp import InMemoryOTPRepository  # noqa: E402
from app.services.otp_service import OTPService  # noqa: E402

CODE_IN_MESSAGE = re.compile(r"code is: (\d{6})")


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 3, 6, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSMSGateway(SMSGateway):
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    async def send_otp_sms(self, phone_number, message):
        self.sent.append((phone_number, message))
        if not self.succeed:
            return SMSSendResult(success=False, message="gateway down")
        return SMSSendResult(success=True, message="queued", message_sid=f"SM{len(self.sent)}")

    @property
    def last_code(self):
        return CODE_IN_MESSAGE.search(self.sent[-1][1]).group(1)


class SequenceGenerator:
    def __init__(self, *codes):
        self.codes = list(codes)

    def __call__(self):
        return self.codes.pop(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(clock):
    return InMemoryOTPRepository(expiry_seconds=600, max_attempts=3, clock=clock)


@pytest.fixture
def sms_gateway():
    return FakeSMSGateway()


@pytest.fixture
def otp_service(repository, sms_gateway):
    return OTPService(
        repository=repository,
        sms_gateway=sms_gateway,
        resend_cooldown_seconds=120,
        generator=SequenceGenerator("123456", "654321", "111111"),
    )
