"""
Core constants for the Singlespine OTP service

This module contains the fixed values shared across phone validation,
OTP storage and the user-facing messages returned by the auth endpoints.
"""

class GhanaPhone:
    """Ghana numbering plan constants"""

    COUNTRY_CODE = "233"
    E164_PREFIX = "+233"
    NATIONAL_LENGTH = 10        # 0XXXXXXXXX
    INTERNATIONAL_LENGTH = 12   # 233XXXXXXXXX

    # Mobile carrier prefixes in national format
    VALID_PREFIXES = frozenset({
        "020", "023", "024", "025", "026", "027", "028",
        "029", "050", "054", "055", "056", "057", "059",
    })

    NETWORK_OPERATORS = {
        "024": "MTN",
        "054": "MTN",
        "055": "MTN",
        "059": "MTN",
        "020": "Vodafone",
        "050": "Vodafone",
        "026": "AirtelTigo",
        "027": "AirtelTigo",
        "056": "AirtelTigo",
        "057": "AirtelTigo",
        "023": "Other",
        "028": "Other",
    }
    UNKNOWN_OPERATOR = "Unknown"


class OTPDefaults:
    """Default OTP policy, overridable through settings"""

    CODE_MIN = 100000
    CODE_MAX = 999999
    EXPIRY_SECONDS = 10 * 60
    MAX_ATTEMPTS = 3
    RESEND_COOLDOWN_SECONDS = 2 * 60
    SWEEP_INTERVAL_SECONDS = 30 * 60

    CACHE_PREFIX = "auth_otp"
    ATTEMPTS_PREFIX = "auth_otp_attempts"


class OTPMessages:
    """Messages returned to API callers"""

    INVALID_PHONE = "Please enter a valid Ghana mobile number."
    INVALID_PHONE_FORMAT = "Invalid phone number format."
    RESEND_TOO_SOON = "Please wait {minutes} minutes before requesting another OTP."
    SEND_FAILED = "Failed to send OTP. Please try again."
    REQUEST_ERROR = "An error occurred. Please try again."
    OTP_SENT = "OTP sent to {phone_number}. It will expire in {minutes} minutes."
    NOT_FOUND = "OTP not found or expired. Please request a new one."
    INVALID_OTP = "Invalid OTP. {remaining} attempts remaining."
    VERIFIED = "OTP verified successfully!"

    SMS_BODY = (
        "Your Singlespine verification code is: {otp}. "
        "This code will expire in {minutes} minutes. Don't share this code with anyone."
    )

    # HTTP boundary
    PHONE_REQUIRED = "Phone number is required"
    PHONE_AND_OTP_REQUIRED = "Phone number and OTP are required"
    REQUEST_OTP_FAILED = "An error occurred while requesting OTP"
    VERIFY_OTP_FAILED = "An error occurred while verifying OTP"
