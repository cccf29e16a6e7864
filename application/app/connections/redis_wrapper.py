import json
import redis
from urllib.parse import quote_plus

# Logger
from app.logging.utils import get_app_logger
logger = get_app_logger("redis_wrapper")

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

REDIS_URL = configs.REDIS_URL

class RedisKeyProcessor:

    @staticmethod
    def _safe(part: str) -> str:
        """Encode dynamic key segments so Redis keys contain only URL-safe chars."""
        return quote_plus(str(part), safe='')

    def otp_key(self, prefix: str, phone_number: str) -> str:
        """``{prefix}:{phone}`` with the leading ``+`` encoded."""
        return f"{prefix}:{self._safe(phone_number)}"


class RedisJSONWrapper:
    def __init__(self, redis_uri=REDIS_URL, database=None, redis_client=None):
        if redis_client is not None:
            self.redis_client = redis_client
            self.connected = True
            return
        if database is not None:
            redis_uri = f"{redis_uri}/{database}"
        try:
            self.redis_client = redis.from_url(redis_uri)
            self.redis_client.ping()
            self.connected = True
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to connect to Redis at {redis_uri}: {e}")
            self.redis_client = None
            self.connected = False

    def set_with_ttl(self, key, data, ttl_seconds: int):
        """Set a key with a TTL (in seconds). Stores data as JSON string."""
        if not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be a positive int, got {ttl_seconds!r}")
        # SETEX attaches expiry atomically with the value
        self.redis_client.setex(key, ttl_seconds, json.dumps(data))

    def get(self, key):
        data = self.redis_client.get(key)
        if data:
            return json.loads(data)
        return None

    def delete(self, *keys):
        return self.redis_client.delete(*keys) > 0

    def incr(self, key) -> int:
        return int(self.redis_client.incr(key))

    def ttl(self, key) -> int:
        return int(self.redis_client.ttl(key))

    def expire(self, key, ttl_seconds: int) -> bool:
        return bool(self.redis_client.expire(key, ttl_seconds))
