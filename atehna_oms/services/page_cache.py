"""
Admin page cache: JSON payloads of admin pages kept in Redis and dropped
whenever an order or the deleted archive changes.
"""
from typing import Any, Optional

from atehna_oms.connections.redis_wrapper import RedisJSONWrapper, RedisKeyProcessor
from atehna_oms.core.constants import AdminPaths
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.page_cache")


class AdminPageCache:
    def __init__(self, client: Optional[RedisJSONWrapper], prefix: str = "admin_page", ttl_seconds: int = 300):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.keys = RedisKeyProcessor(prefix)

    @classmethod
    def from_configs(cls, configs) -> "AdminPageCache":
        if not configs.ADMIN_PAGE_CACHE_ENABLED:
            logger.info("admin_page_cache_disabled")
            return cls(None, configs.ADMIN_PAGE_CACHE_PREFIX, configs.ADMIN_PAGE_CACHE_TTL_SECONDS)
        client = RedisJSONWrapper(configs.REDIS_URL, database=configs.REDIS_CACHE_DB)
        if not client.connected:
            logger.warning("admin_page_cache_disabled | reason=redis_unavailable")
            client = None
        return cls(client, configs.ADMIN_PAGE_CACHE_PREFIX, configs.ADMIN_PAGE_CACHE_TTL_SECONDS)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def get(self, path: str, variant: str = "") -> Optional[Any]:
        if not self.enabled:
            return None
        key = self.keys.page_variant_key(path, variant)
        try:
            return self.client.get(key)
        except Exception as e:
            logger.error(f"admin_page_cache_read_failed | key={key} error={e}")
            return None

    def set(self, path: str, payload: Any, variant: str = "") -> None:
        if not self.enabled:
            return
        key = self.keys.page_variant_key(path, variant)
        try:
            self.client.set_with_ttl(key, payload, self.ttl_seconds)
        except Exception as e:
            logger.error(f"admin_page_cache_write_failed | key={key} error={e}")

    def invalidate_path(self, path: str) -> int:
        if not self.enabled:
            return 0
        try:
            return self.client.delete_keys_with_prefix(f"{self.keys.page_key(path)}:")
        except Exception as e:
            # a failed invalidation must not undo the write that triggered it
            logger.error(f"admin_page_cache_invalidate_failed | path={path} error={e}")
            return 0

    def invalidate_order_paths(self, order_id: Optional[int] = None) -> int:
        """Drop the orders list, the deleted archive and, when given, one order's detail page."""
        paths = [AdminPaths.ORDERS, AdminPaths.DELETED_ARCHIVE]
        if isinstance(order_id, int):
            paths.append(AdminPaths.order_detail(order_id))
        removed = sum(self.invalidate_path(path) for path in paths)
        logger.info(f"admin_pages_invalidated | order_id={order_id} paths={paths} removed_keys={removed}")
        return removed
