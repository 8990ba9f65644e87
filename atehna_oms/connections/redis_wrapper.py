import json
import redis
from urllib.parse import quote_plus

# Logger
from atehna_oms.logging.utils import get_app_logger
logger = get_app_logger("atehna_oms.redis_wrapper")


class RedisKeyProcessor:
    def __init__(self, prefix: str):
        self.prefix = prefix

    @staticmethod
    def _safe(part: str) -> str:
        """Encode dynamic key segments so Redis keys contain only URL-safe chars."""
        return quote_plus(str(part), safe='')

    def page_key(self, path: str) -> str:
        """``{prefix}:{path}`` for an admin page path."""
        return f"{self.prefix}:{self._safe(path)}"

    def page_variant_key(self, path: str, variant: str) -> str:
        """Cached variants of one page (filters, pagination) share the page key as prefix."""
        return f"{self.page_key(path)}:{self._safe(variant)}"


class RedisJSONWrapper:
    def __init__(self, redis_uri: str, database=None):
        if database is not None:
            redis_uri = f"{redis_uri}/{database}"
        try:
            self.redis_client = redis.from_url(redis_uri)
            self.redis_client.ping()
            self.connected = True
        except redis.exceptions.RedisError as e:
            logger.error(f"redis_connect_failed | uri={redis_uri} error={e}")
            self.redis_client = None
            self.connected = False

    def set_with_ttl(self, key, data, ttl_seconds: int):
        """Set a key with a TTL (in seconds). Stores data as JSON string."""
        value = json.dumps(data, default=str)
        if isinstance(ttl_seconds, int) and ttl_seconds > 0:
            self.redis_client.setex(key, ttl_seconds, value)
        else:
            self.redis_client.set(key, value)

    def get(self, key):
        data = self.redis_client.get(key)
        if data:
            return json.loads(data)
        return None

    def delete(self, key):
        return self.redis_client.delete(key) > 0

    def keys(self, pattern='*'):
        return [key.decode('utf-8') if isinstance(key, bytes) else key for key in self.redis_client.scan_iter(match=pattern)]

    def delete_keys_with_prefix(self, prefix):
        matching_keys = self.keys(f"{prefix}*")
        for key in matching_keys:
            self.delete(key)
        return len(matching_keys)
