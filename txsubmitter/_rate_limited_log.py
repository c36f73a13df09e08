"""
Thread-safe rate-limited logging utilities.

Used to keep repeated progress messages (such as "still waiting for a
receipt" while polling) from flooding the log.
"""
import logging
import threading
from typing import Dict, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# One TTL cache per interval, so each interval expires its own keys
_log_caches: Dict[int, TTLCache] = {}
_log_caches_lock = threading.RLock()

_MAX_KEYS = 100


def _cache_for(interval: int) -> TTLCache:
    cache = _log_caches.get(interval)
    if cache is None:
        cache = TTLCache(maxsize=_MAX_KEYS, ttl=interval)
        _log_caches[interval] = cache
    return cache


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = 60,
    logger_instance: Optional[logging.Logger] = None,
    key: Optional[str] = None,
) -> bool:
    """
    Log a message at most once per ``interval`` seconds, in a thread-safe manner.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical logs in seconds
        logger_instance: Logger to use (defaults to module logger)
        key: Deduplication key (defaults to level and message)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    cache_key = key or f"{level}:{message}"

    with _log_caches_lock:
        cache = _cache_for(interval)
        if cache_key in cache:
            return False
        log_method(message)
        cache[cache_key] = True
        return True


def reset_rate_limits() -> None:
    """Forget every suppressed key."""
    with _log_caches_lock:
        _log_caches.clear()
