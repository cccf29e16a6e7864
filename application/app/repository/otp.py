"""
OTP Repository

Keyed storage of pending OTPs, one record per canonical phone number.
The in-memory repository serves a single process; the Redis repository
is shared across instances and relies on per-key TTLs for expiry.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from app.connections.redis_wrapper import RedisJSONWrapper, RedisKeyProcessor
from app.core.constants import OTPDefaults
from app.dto.phone_validations import mask_phone_number
from app.logging.utils import get_app_logger
from app.models.otp import OtpRecord, hash_otp
from app.utils.datetime_helpers import get_utc_now

logger = get_app_logger("app.otp_repository")

Clock = Callable[[], datetime]


class OTPStoreError(Exception):
    """The OTP backing store could not be reached."""


class OTPRepository(ABC):
    """Storage contract for pending OTPs"""

    def __init__(
        self,
        expiry_seconds: int = OTPDefaults.EXPIRY_SECONDS,
        max_attempts: int = OTPDefaults.MAX_ATTEMPTS,
        clock: Clock = get_utc_now,
    ):
        self.expiry_seconds = expiry_seconds
        self.max_attempts = max_attempts
        self.clock = clock

    def _new_record(self, phone_number: str, otp: str) -> OtpRecord:
        return OtpRecord(
            phone_number=phone_number,
            code_hash=hash_otp(otp),
            expires_at=self.clock() + timedelta(seconds=self.expiry_seconds),
        )

    def _log_replaced(self, phone_number: str, previous: Optional[OtpRecord]) -> None:
        if previous is not None and not previous.is_expired(self.clock()):
            logger.info(f"otp_replaced | phone={mask_phone_number(phone_number)} attempts={previous.attempts}")

    @abstractmethod
    def put(self, phone_number: str, otp: str) -> OtpRecord:
        """Insert or overwrite the record for ``phone_number`` with a fresh code."""

    @abstractmethod
    def get(self, phone_number: str) -> Optional[OtpRecord]:
        """Live record, or None when absent or expired (expired records are evicted)."""

    @abstractmethod
    def record_failed_attempt(self, phone_number: str) -> Optional[int]:
        """Atomically bump attempts; evicts at the cap. None when there is no live record."""

    @abstractmethod
    def evict(self, phone_number: str) -> bool:
        """Remove the record unconditionally."""

    @abstractmethod
    def sweep_expired(self) -> int:
        """Remove records already past their expiry; returns how many were removed."""


class InMemoryOTPRepository(OTPRepository):
    """Process-local store. All access is serialised through one lock."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._records: Dict[str, OtpRecord] = {}
        self._lock = threading.Lock()

    def _live(self, phone_number: str) -> Optional[OtpRecord]:
        # caller holds the lock
        record = self._records.get(phone_number)
        if record is None:
            return None
        if record.is_expired(self.clock()):
            del self._records[phone_number]
            return None
        return record

    def put(self, phone_number: str, otp: str) -> OtpRecord:
        record = self._new_record(phone_number, otp)
        with self._lock:
            previous = self._records.get(phone_number)
            self._records[phone_number] = record
        self._log_replaced(phone_number, previous)
        return replace(record)

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        with self._lock:
            record = self._live(phone_number)
            return replace(record) if record else None

    def record_failed_attempt(self, phone_number: str) -> Optional[int]:
        with self._lock:
            record = self._live(phone_number)
            if record is None:
                return None
            record.attempts += 1
            if record.attempts >= self.max_attempts:
                del self._records[phone_number]
            return record.attempts

    def evict(self, phone_number: str) -> bool:
        with self._lock:
            return self._records.pop(phone_number, None) is not None

    def sweep_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [phone for phone, record in self._records.items() if record.is_expired(now)]
            for phone in expired:
                del self._records[phone]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class RedisOTPRepository(OTPRepository):
    """
    Shared store for multi-instance deployments.

    Layout per phone number:
        auth_otp:{phone}          JSON record, SETEX with the OTP expiry
        auth_otp_attempts:{phone} integer counter, mutated with INCR
    """

    def __init__(self, redis_wrapper: RedisJSONWrapper, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.redis = redis_wrapper
        self.keys = RedisKeyProcessor()

    def _record_key(self, phone_number: str) -> str:
        return self.keys.otp_key(OTPDefaults.CACHE_PREFIX, phone_number)

    def _attempts_key(self, phone_number: str) -> str:
        return self.keys.otp_key(OTPDefaults.ATTEMPTS_PREFIX, phone_number)

    def _ensure_connected(self):
        if not getattr(self.redis, "connected", False):
            logger.error("Redis client unavailable for OTP storage")
            raise OTPStoreError("OTP store unavailable")

    def put(self, phone_number: str, otp: str) -> OtpRecord:
        self._ensure_connected()
        previous = self.get(phone_number)
        record = self._new_record(phone_number, otp)
        self.redis.set_with_ttl(self._record_key(phone_number), record.to_dict(), self.expiry_seconds)
        self.redis.set_with_ttl(self._attempts_key(phone_number), 0, self.expiry_seconds)
        self._log_replaced(phone_number, previous)
        return record

    def get(self, phone_number: str) -> Optional[OtpRecord]:
        self._ensure_connected()
        data = self.redis.get(self._record_key(phone_number))
        if not data:
            return None
        record = OtpRecord.from_dict(data)
        if record.is_expired(self.clock()):
            self.evict(phone_number)
            return None
        record.attempts = int(self.redis.get(self._attempts_key(phone_number)) or 0)
        if record.attempts >= self.max_attempts:
            self.evict(phone_number)
            return None
        return record

    def record_failed_attempt(self, phone_number: str) -> Optional[int]:
        if self.get(phone_number) is None:
            return None
        attempts_key = self._attempts_key(phone_number)
        attempts = self.redis.incr(attempts_key)
        if self.redis.ttl(attempts_key) < 0:
            # record vanished between read and INCR; do not leave an immortal counter
            self.redis.expire(attempts_key, self.expiry_seconds)
        if attempts >= self.max_attempts:
            self.evict(phone_number)
        return attempts

    def evict(self, phone_number: str) -> bool:
        self._ensure_connected()
        return self.redis.delete(self._record_key(phone_number), self._attempts_key(phone_number))

    def sweep_expired(self) -> int:
        # Redis expires keys itself
        return 0


def build_otp_repository(configs, clock: Clock = get_utc_now) -> OTPRepository:
    """Repository for the configured ``OTP_STORE_BACKEND``."""
    options = dict(
        expiry_seconds=configs.OTP_EXPIRY_SECONDS,
        max_attempts=configs.OTP_MAX_ATTEMPTS,
        clock=clock,
    )
    backend = configs.OTP_STORE_BACKEND
    if backend == "redis":
        wrapper = RedisJSONWrapper(configs.REDIS_URL, database=configs.REDIS_CACHE_DB)
        logger.info("Using Redis OTP store")
        return RedisOTPRepository(wrapper, **options)
    if backend != "memory":
        raise ValueError(f"Unknown OTP_STORE_BACKEND: {backend}")
    logger.info("Using in-memory OTP store")
    return InMemoryOTPRepository(**options)
