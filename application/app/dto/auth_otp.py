from pydantic import BaseModel, ConfigDict, Field, field_validator


def _required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


class RequestOTPRequest(BaseModel):
    """Request model for requesting OTP"""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", description="Ghana mobile number, local or +233 form")

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, v):
        return _required(v)


class VerifyOTPRequest(BaseModel):
    """Request model for verifying OTP"""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", description="Ghana mobile number, local or +233 form")
    otp: str = Field(..., description="6-digit OTP code")

    @field_validator('phone_number', 'otp')
    @classmethod
    def validate_required(cls, v):
        return _required(v)


class OTPResponse(BaseModel):
    """Response model for both OTP endpoints"""
    success: bool
    message: str


class OTPRequestResult(BaseModel):
    success: bool
    message: str


class OTPVerifyResult(BaseModel):
    valid: bool
    message: str
