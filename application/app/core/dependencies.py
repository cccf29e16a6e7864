"""
Application wiring: the OTP service and its collaborators are built once
per app and handed to routes through FastAPI dependencies.
"""
from fastapi import Request

from app.integrations.twilio_sms import build_sms_gateway
from app.repository.otp import build_otp_repository
from app.services.otp_service import OTPService


def build_otp_service(configs) -> OTPService:
    return OTPService(
        repository=build_otp_repository(configs),
        sms_gateway=build_sms_gateway(configs),
        resend_cooldown_seconds=configs.OTP_RESEND_COOLDOWN_SECONDS,
    )


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service
