from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.core.constants import OTPMessages
from app.core.dependencies import get_otp_service
from app.dto.auth_otp import RequestOTPRequest, VerifyOTPRequest, OTPResponse
from app.logging.utils import get_app_logger
from app.middlewares.request_context import request_context
from app.services.otp_service import OTPService

logger = get_app_logger(__name__)

router = APIRouter(prefix="/otp", tags=["auth"])


def _respond(success: bool, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=OTPResponse(success=success, message=message).model_dump())


@router.post("/request", response_model=OTPResponse)
async def request_otp(request: Request, otp_service: OTPService = Depends(get_otp_service)):
    """
    Request an OTP for the given phone number.
    200 when sent, 400 on invalid number, cooldown or send failure.
    """
    request_context.module_name = 'auth_otp'
    try:
        body = await request.json()
        try:
            payload = RequestOTPRequest.model_validate(body)
        except ValidationError:
            return _respond(False, OTPMessages.PHONE_REQUIRED, status.HTTP_400_BAD_REQUEST)

        result = await otp_service.request_otp(payload.phone_number)
        status_code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
        return _respond(result.success, result.message, status_code)

    except Exception as e:
        logger.error(f"Unexpected error in request_otp: {str(e)}", exc_info=True)
        return _respond(False, OTPMessages.REQUEST_OTP_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/verify", response_model=OTPResponse)
async def verify_otp(request: Request, otp_service: OTPService = Depends(get_otp_service)):
    """
    Verify a submitted OTP. ``success`` mirrors whether the code was valid.
    """
    request_context.module_name = 'auth_otp'
    try:
        body = await request.json()
        try:
            payload = VerifyOTPRequest.model_validate(body)
        except ValidationError:
            return _respond(False, OTPMessages.PHONE_AND_OTP_REQUIRED, status.HTTP_400_BAD_REQUEST)

        result = otp_service.verify_otp(payload.phone_number, payload.otp)
        status_code = status.HTTP_200_OK if result.valid else status.HTTP_400_BAD_REQUEST
        return _respond(result.valid, result.message, status_code)

    except Exception as e:
        logger.error(f"Unexpected error in verify_otp: {str(e)}", exc_info=True)
        return _respond(False, OTPMessages.VERIFY_OTP_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)
