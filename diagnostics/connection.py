import os
import logging
from functools import lru_cache
from typing import Any, Dict

import redis
from redis.exceptions import RedisError, AuthenticationError

logger = logging.getLogger(__name__)


def redis_settings_from_env() -> Dict[str, Any]:
    """
    Connection settings for the diagnostic replay store.

    - REDIS_HOST: Hostname (default: localhost)
    - REDIS_PORT: Port (default: 6379)
    - REDIS_PASSWORD: Password (optional; unauthenticated when unset)
    - REDIS_DB: Database index (default: 0)
    """
    return {
        "host": os.getenv("REDIS_HOST", "localhost"),
        "port": int(os.getenv("REDIS_PORT", 6379)),
        "password": os.getenv("REDIS_PASSWORD") or None,
        "db": int(os.getenv("REDIS_DB", 0)),
    }


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Process-wide Redis client, verified with a PING on first use."""
    settings = redis_settings_from_env()
    if settings["password"] is None:
        logger.warning("REDIS_PASSWORD not set, connecting to Redis without auth")

    try:
        # Dumps are small and best-effort: short socket timeout, small pool
        pool = redis.ConnectionPool(
            **settings,
            decode_responses=True,
            max_connections=20,
            socket_timeout=2.0,
        )
        client = redis.Redis(connection_pool=pool)
        client.ping()
    except AuthenticationError:
        logger.critical("Redis authentication failed. Check REDIS_PASSWORD.")
        raise
    except RedisError as e:
        logger.critical(f"Could not connect to Redis: {e}")
        raise

    logger.info(
        f"Diagnostic store connected to Redis at "
        f"{settings['host']}:{settings['port']}/{settings['db']}"
    )
    return client
