"""
OTP Model
One pending verification code per canonical phone number
"""
import hashlib
import hmac
from dataclasses import dataclass, asdict
from datetime import datetime

from app.utils.datetime_helpers import parse_datetime


def hash_otp(otp: str) -> str:
    """SHA256 digest of an OTP; raw codes are never stored."""
    return hashlib.sha256(str(otp).encode()).hexdigest()


@dataclass
class OtpRecord:
    phone_number: str
    code_hash: str
    expires_at: datetime
    attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def matches(self, otp: str) -> bool:
        return hmac.compare_digest(self.code_hash, hash_otp(otp))

    def to_dict(self) -> dict:
        data = asdict(self)
        data['expires_at'] = self.expires_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "OtpRecord":
        return cls(
            phone_number=data['phone_number'],
            code_hash=data['code_hash'],
            expires_at=parse_datetime(data['expires_at']),
            attempts=int(data.get('attempts', 0)),
        )
