import httpx
from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel

from app.dto.phone_validations import mask_phone_number
from app.logging.utils import get_app_logger

logger = get_app_logger(__name__)


class SMSSendResult(BaseModel):
    success: bool
    message: str
    message_sid: Optional[str] = None


class SMSGateway(ABC):
    """Outbound SMS boundary. One attempt per call, no retries."""

    @abstractmethod
    async def send_otp_sms(self, phone_number: str, message: str) -> SMSSendResult:
        ...


class TwilioSMSAction(SMSGateway):
    """
    Twilio Programmable Messaging integration for sending SMS messages.
    Simple wrapper around the Twilio REST API.
    """

    BASE_URL = "https://api.twilio.com/2010-04-01"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _messages_url(self) -> str:
        return f"{self.base_url}/Accounts/{self.account_sid}/Messages.json"

    async def send_otp_sms(self, phone_number: str, message: str) -> SMSSendResult:
        """
        Send OTP via SMS using the Twilio Messages API.

        Args:
            phone_number: Recipient in +233 form
            message: Full SMS body

        Returns:
            SMSSendResult: success flag, message and Twilio message SID
        """
        masked = mask_phone_number(phone_number)
        if not self.configured:
            logger.error("Twilio credentials not configured")
            return SMSSendResult(success=False, message='SMS gateway not configured')

        data = {
            'To': phone_number,
            'From': self.from_number,
            'Body': message,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self._messages_url(),
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                )

            if 200 <= response.status_code < 300:
                message_sid = response.json().get('sid')
                logger.info(f"OTP SMS sent successfully to {masked}. Message SID: {message_sid}")
                return SMSSendResult(success=True, message='OTP sent successfully', message_sid=message_sid)

            try:
                user_message = response.json().get('message', 'Failed to send OTP')
            except ValueError:
                user_message = 'Failed to send OTP'
            logger.warning(f"Failed to send OTP SMS to {masked}. Status: {response.status_code}, Response: {response.text}")
            return SMSSendResult(success=False, message=user_message)

        except httpx.HTTPError as e:
            logger.error(f"Request failed while sending OTP SMS to {masked}: {str(e)}")
            return SMSSendResult(success=False, message='Failed to connect to SMS service')


class LogSMSAction(SMSGateway):
    """Development gateway: writes a masked line to the log instead of sending."""

    def __init__(self):
        self.sent = 0

    async def send_otp_sms(self, phone_number: str, message: str) -> SMSSendResult:
        self.sent += 1
        message_sid = f"log-{self.sent}"
        logger.info(f"OTP SMS (log backend) to={mask_phone_number(phone_number)} length={len(message)} sid={message_sid}")
        return SMSSendResult(success=True, message='OTP logged', message_sid=message_sid)


def build_sms_gateway(configs) -> SMSGateway:
    """Gateway for the configured ``SMS_PROVIDER``."""
    provider = configs.SMS_PROVIDER
    if provider == "log":
        return LogSMSAction()
    if provider != "twilio":
        raise ValueError(f"Unknown SMS_PROVIDER: {provider}")
    return TwilioSMSAction(
        account_sid=configs.TWILIO_ACCOUNT_SID,
        auth_token=configs.TWILIO_AUTH_TOKEN,
        from_number=configs.TWILIO_PHONE_NUMBER,
        base_url=configs.TWILIO_BASE_URL,
        timeout=configs.SMS_TIMEOUT_SECONDS,
    )
