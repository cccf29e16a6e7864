import secrets
from datetime import timedelta
from typing import Callable, Optional

from app.core.constants import OTPDefaults, OTPMessages
from app.dto.auth_otp import OTPRequestResult, OTPVerifyResult
from app.dto.phone_validations import normalize_phone_number, mask_phone_number, get_network_operator
from app.integrations.twilio_sms import SMSGateway
from app.logging.utils import get_app_logger
from app.middlewares.request_context import request_context
from app.repository.otp import OTPRepository, Clock

logger = get_app_logger(__name__)


def generate_otp() -> str:
    """
    Generate a random 6-digit OTP.

    Returns:
        str: Uniform in [100000, 999999], so always six characters
    """
    span = OTPDefaults.CODE_MAX - OTPDefaults.CODE_MIN + 1
    return str(OTPDefaults.CODE_MIN + secrets.randbelow(span))


class OTPService:
    """
    OTP issuance and verification:
    - phone validation and canonicalisation
    - resend cooldown
    - SMS dispatch, storing the code only once it was delivered
    - attempt-limited, one-time verification
    """

    def __init__(
        self,
        repository: OTPRepository,
        sms_gateway: SMSGateway,
        resend_cooldown_seconds: int = OTPDefaults.RESEND_COOLDOWN_SECONDS,
        generator: Callable[[], str] = generate_otp,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.sms_gateway = sms_gateway
        self.resend_cooldown_seconds = resend_cooldown_seconds
        self.generator = generator
        self.clock = clock or repository.clock

    @property
    def expiry_minutes(self) -> int:
        return self.repository.expiry_seconds // 60

    @property
    def cooldown_minutes(self) -> int:
        return max(self.resend_cooldown_seconds // 60, 1)

    def build_sms_message(self, otp: str) -> str:
        return OTPMessages.SMS_BODY.format(otp=otp, minutes=self.expiry_minutes)

    def _within_cooldown(self, record) -> bool:
        # A record issued less than the cooldown ago still has more than
        # (expiry - cooldown) left to live.
        threshold = self.clock() + timedelta(seconds=self.repository.expiry_seconds - self.resend_cooldown_seconds)
        return record.expires_at > threshold

    async def request_otp(self, phone_number: str) -> OTPRequestResult:
        """
        Request OTP for the given phone number.
        Steps:
        1. Validate and canonicalise phone number
        2. Reject resends inside the cooldown window
        3. Generate OTP and send it via the SMS gateway
        4. Store the OTP only after a successful send
        """
        try:
            normalized = normalize_phone_number(phone_number)
            if not normalized.valid:
                logger.warning("OTP request rejected: invalid phone number")
                return OTPRequestResult(success=False, message=OTPMessages.INVALID_PHONE)

            formatted = normalized.phone_number
            masked = mask_phone_number(formatted)
            request_context.phone_number = masked

            existing = self.repository.get(formatted)
            if existing is not None and self._within_cooldown(existing):
                logger.info(f"OTP resend requested too soon for {masked}")
                return OTPRequestResult(
                    success=False,
                    message=OTPMessages.RESEND_TOO_SOON.format(minutes=self.cooldown_minutes),
                )

            otp = self.generator()
            sms_result = await self.sms_gateway.send_otp_sms(formatted, self.build_sms_message(otp))
            if not sms_result.success:
                logger.warning(f"Failed to send OTP SMS to {masked}: {sms_result.message}")
                return OTPRequestResult(success=False, message=OTPMessages.SEND_FAILED)

            self.repository.put(formatted, otp)
            logger.info(f"OTP request successful for {masked} network={get_network_operator(formatted)}")
            return OTPRequestResult(
                success=True,
                message=OTPMessages.OTP_SENT.format(phone_number=formatted, minutes=self.expiry_minutes),
            )

        except Exception as e:
            logger.error(f"Unexpected error requesting OTP: {str(e)}", exc_info=True)
            return OTPRequestResult(success=False, message=OTPMessages.REQUEST_ERROR)

    def verify_otp(self, phone_number: str, otp_code: str) -> OTPVerifyResult:
        """
        Validate a submitted OTP against the stored record.

        Args:
            phone_number: Raw phone number
            otp_code: Code submitted by the user

        Returns:
            OTPVerifyResult: valid flag and user-facing message
        """
        normalized = normalize_phone_number(phone_number)
        if not normalized.valid:
            logger.warning("OTP verification rejected: invalid phone number")
            return OTPVerifyResult(valid=False, message=OTPMessages.INVALID_PHONE_FORMAT)

        formatted = normalized.phone_number
        masked = mask_phone_number(formatted)
        request_context.phone_number = masked

        record = self.repository.get(formatted)
        if record is None:
            logger.warning(f"OTP expired or not found for {masked}")
            return OTPVerifyResult(valid=False, message=OTPMessages.NOT_FOUND)

        if not record.matches(str(otp_code)):
            attempts = self.repository.record_failed_attempt(formatted)
            if attempts is None:
                # expired or evicted between the read and the increment
                return OTPVerifyResult(valid=False, message=OTPMessages.NOT_FOUND)
            remaining = max(self.repository.max_attempts - attempts, 0)
            logger.warning(f"Invalid OTP provided for {masked}, {remaining} attempts remaining")
            return OTPVerifyResult(valid=False, message=OTPMessages.INVALID_OTP.format(remaining=remaining))

        if not self.repository.evict(formatted):
            # a concurrent verification consumed it first
            return OTPVerifyResult(valid=False, message=OTPMessages.NOT_FOUND)
        logger.info(f"OTP validated successfully for {masked}")
        return OTPVerifyResult(valid=True, message=OTPMessages.VERIFIED)
