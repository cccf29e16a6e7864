from app.core.constants import OTPMessages
from app.services.otp_service import OTPService, generate_otp

from conftest import FakeSMSGateway, SequenceGenerator

PHONE = "+233241234567"


def test_generate_otp_is_six_digits():
    for _ in range(500):
        otp = generate_otp()
        assert len(otp) == 6
        assert otp.isdigit()
        assert 100000 <= int(otp) <= 999999


async def test_request_otp_sends_and_stores(otp_service, repository, sms_gateway):
    result = await otp_service.request_otp("0241234567")

    assert result.success
    assert result.message == "OTP sent to +233241234567. It will expire in 10 minutes."
    phone, message = sms_gateway.sent[0]
    assert phone == PHONE
    assert message == (
        "Your Singlespine verification code is: 123456. "
        "This code will expire in 10 minutes. Don't share this code with anyone."
    )
    record = repository.get(PHONE)
    assert record.attempts == 0
    assert record.matches("123456")


async def test_request_otp_rejects_invalid_phone(otp_service, repository, sms_gateway):
    result = await otp_service.request_otp("0211234567")

    assert not result.success
    assert result.message == OTPMessages.INVALID_PHONE
    assert sms_gateway.sent == []
    assert len(repository) == 0


async def test_request_otp_does_not_store_undelivered_code(repository):
    gateway = FakeSMSGateway(succeed=False)
    service = OTPService(repository, gateway, generator=SequenceGenerator("123456"))

    result = await service.request_otp("0241234567")

    assert not result.success
    assert result.message == OTPMessages.SEND_FAILED
    assert len(gateway.sent) == 1
    assert repository.get(PHONE) is None


async def test_resend_inside_cooldown_is_rejected(otp_service, repository, sms_gateway, clock):
    await otp_service.request_otp("+233241234567")
    first = repository.get(PHONE)

    clock.advance(seconds=119)
    result = await otp_service.request_otp("0241234567")

    assert not result.success
    assert result.message == "Please wait 2 minutes before requesting another OTP."
    assert len(sms_gateway.sent) == 1
    assert repository.get(PHONE) == first


async def test_resend_after_cooldown_replaces_code(otp_service, repository, sms_gateway, clock):
    await otp_service.request_otp("0241234567")
    otp_service.verify_otp("0241234567", "000000")

    clock.advance(minutes=2, seconds=1)
    result = await otp_service.request_otp("0241234567")

    assert result.success
    assert len(sms_gateway.sent) == 2
    record = repository.get(PHONE)
    assert record.matches("654321")
    assert record.attempts == 0
    assert not otp_service.verify_otp("0241234567", "123456").valid


async def test_request_otp_reports_unexpected_errors(repository, sms_gateway):
    def broken_generator():
        raise RuntimeError("entropy exhausted")

    service = OTPService(repository, sms_gateway, generator=broken_generator)
    result = await service.request_otp("0241234567")

    assert not result.success
    assert result.message == OTPMessages.REQUEST_ERROR
    assert len(repository) == 0


async def test_verify_otp_success_is_one_time(otp_service):
    await otp_service.request_otp("0241234567")

    first = otp_service.verify_otp("233241234567", "123456")
    second = otp_service.verify_otp("0241234567", "123456")

    assert first.valid
    assert first.message == "OTP verified successfully!"
    assert not second.valid
    assert second.message == OTPMessages.NOT_FOUND


async def test_three_wrong_codes_exhaust_the_record(otp_service, repository):
    await otp_service.request_otp("0241234567")

    messages = [otp_service.verify_otp("0241234567", "000000").message for _ in range(3)]

    assert messages == [
        "Invalid OTP. 2 attempts remaining.",
        "Invalid OTP. 1 attempts remaining.",
        "Invalid OTP. 0 attempts remaining.",
    ]
    assert repository.get(PHONE) is None
    result = otp_service.verify_otp("0241234567", "123456")
    assert not result.valid
    assert result.message == "OTP not found or expired. Please request a new one."


async def test_failed_attempt_is_recorded(otp_service, repository):
    await otp_service.request_otp("0241234567")
    otp_service.verify_otp("0241234567", "000000")
    assert repository.get(PHONE).attempts == 1


async def test_expired_code_is_rejected_even_with_attempts_left(otp_service, clock):
    await otp_service.request_otp("0241234567")
    clock.advance(minutes=10, seconds=1)

    result = otp_service.verify_otp("0241234567", "123456")

    assert not result.valid
    assert result.message == OTPMessages.NOT_FOUND


def test_verify_otp_without_request(otp_service):
    result = otp_service.verify_otp("0241234567", "123456")
    assert not result.valid
    assert result.message == OTPMessages.NOT_FOUND


def test_verify_otp_invalid_phone(otp_service):
    result = otp_service.verify_otp("12345", "123456")
    assert not result.valid
    assert result.message == "Invalid phone number format."


async def test_messages_never_contain_the_code(otp_service):
    request = await otp_service.request_otp("0241234567")
    wrong = otp_service.verify_otp("0241234567", "000000")
    assert "123456" not in request.message
    assert "123456" not in wrong.message
