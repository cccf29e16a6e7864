"""
Ghana phone number validation and formatting.

Accepted shapes once every non-digit is stripped:

* national      ``0XXXXXXXXX``    (10 digits)
* international ``233XXXXXXXXX``  (12 digits, ``+`` optional in the input)

Everything is canonicalised to ``+233XXXXXXXXX``. The national carrier
prefix must be one of ``GhanaPhone.VALID_PREFIXES``.
"""
import re
from typing import Optional

from pydantic import BaseModel

from app.core.constants import GhanaPhone, OTPMessages

NON_DIGITS = re.compile(r'\D')


class FormatError(ValueError):
    """Phone number does not match an accepted Ghana shape."""


class PhoneNumberResult(BaseModel):
    """Outcome of normalising a raw phone number."""
    valid: bool
    phone_number: Optional[str] = None
    message: str = ""

    def unwrap(self) -> str:
        if not self.valid:
            raise FormatError(self.message)
        return self.phone_number


def digits_only(phone: str) -> str:
    return NON_DIGITS.sub('', phone or '')


def _national_form(cleaned: str) -> Optional[str]:
    if len(cleaned) == GhanaPhone.NATIONAL_LENGTH and cleaned.startswith('0'):
        return cleaned
    if len(cleaned) == GhanaPhone.INTERNATIONAL_LENGTH and cleaned.startswith(GhanaPhone.COUNTRY_CODE):
        return '0' + cleaned[len(GhanaPhone.COUNTRY_CODE):]
    return None


def validate_ghana_phone_number(phone: str) -> bool:
    """Return True when ``phone`` is a Ghana mobile number on an allowed carrier prefix."""
    cleaned = digits_only(phone)

    if len(cleaned) == GhanaPhone.NATIONAL_LENGTH and cleaned.startswith('0'):
        return cleaned[:3] in GhanaPhone.VALID_PREFIXES

    if len(cleaned) == GhanaPhone.INTERNATIONAL_LENGTH and cleaned.startswith(GhanaPhone.COUNTRY_CODE):
        return validate_ghana_phone_number('0' + cleaned[len(GhanaPhone.COUNTRY_CODE):])

    return False


def normalize_phone_number(phone: str) -> PhoneNumberResult:
    """
    Normalize a raw phone number to ``+233XXXXXXXXX``.

    Args:
        phone: Raw user input, any punctuation allowed

    Returns:
        PhoneNumberResult: valid with the canonical number, or invalid with
        a reason. Shapes outside the two accepted forms are never guessed at.
    """
    if not validate_ghana_phone_number(phone):
        return PhoneNumberResult(valid=False, message=OTPMessages.INVALID_PHONE_FORMAT)

    national = _national_form(digits_only(phone))
    return PhoneNumberResult(valid=True, phone_number=GhanaPhone.E164_PREFIX + national[1:])


def format_phone_number(phone: str) -> str:
    """Canonical ``+233`` form; raises FormatError on invalid input."""
    return normalize_phone_number(phone).unwrap()


def mask_phone_number(phone: str) -> str:
    """+233241234567 -> +233****4567. Unparseable input is returned as-is."""
    result = normalize_phone_number(phone)
    if not result.valid:
        return phone
    formatted = result.phone_number
    return formatted[:4] + '****' + formatted[-4:]


def get_network_operator(phone: str) -> str:
    national = _national_form(digits_only(phone))
    if national is None:
        return GhanaPhone.UNKNOWN_OPERATOR
    return GhanaPhone.NETWORK_OPERATORS.get(national[:3], GhanaPhone.UNKNOWN_OPERATOR)


def pretty_format_phone_number(phone: str) -> str:
    """0241234567 -> 024 123 4567"""
    national = _national_form(digits_only(phone))
    if national is None:
        return phone
    return f"{national[:3]} {national[3:6]} {national[6:]}"
