import json
import logging
from datetime import datetime, date
from typing import Any

import redis

from blogify.core.config import settings

logger = logging.getLogger(__name__)


def _default_serializer(obj):
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.strftime("%Y-%m-%d")
    return str(obj)


class RedisClient:
    """Singleton Redis Client Wrapper

    Every operation fails open: a Redis outage degrades to cache misses.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(RedisClient, cls).__new__(cls)
            cls._instance.client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                db=settings.REDIS_DB,
                password=settings.REDIS_PASSWORD,
                decode_responses=True,
                socket_connect_timeout=1,
            )
        return cls._instance

    @property
    def enabled(self) -> bool:
        return settings.CACHE_ENABLED

    def get_client(self) -> redis.Redis:
        return self.client

    def get(self, key: str) -> Any:
        if not self.enabled:
            return None
        try:
            value = self.client.get(key)
            if value is None:
                return None
            try:
                return json.loads(value)
            except ValueError:
                return value
        except redis.RedisError as e:
            logger.error(f"Redis get error: {e}")
            return None

    def set(self, key: str, value: Any, expire: int = 3600) -> bool:
        if not self.enabled:
            return False
        try:
            payload = json.dumps(value, default=_default_serializer, ensure_ascii=False)
            self.client.set(key, payload, ex=expire)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis set error: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.delete(key)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis delete error: {e}")
            return False

    def incr(self, key: str) -> int:
        if not self.enabled:
            return 0
        try:
            return self.client.incr(key)
        except redis.RedisError as e:
            logger.error(f"Redis incr error: {e}")
            return 0


redis_client = RedisClient()

# 标签列表缓存版本号，自增即失效
TAG_CACHE_VERSION_KEY = "tags:version"
