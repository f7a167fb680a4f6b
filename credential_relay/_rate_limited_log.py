"""
Thread-safe rate-limited logging utilities.

While the ledger is unreachable every request fails the same way; this keeps
the log readable by emitting each distinct message at most once per interval.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

# Configure logger
logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60

# Maximum of 100 distinct messages, each remembered for DEFAULT_INTERVAL seconds
_log_cache: TTLCache = TTLCache(maxsize=100, ttl=DEFAULT_INTERVAL)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message unless the same message was logged recently.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)

    key = f"{level}:{message}"
    with _log_cache_lock:
        if key in _log_cache:
            return False
        log_method(message)
        _log_cache[key] = True  # Value doesn't matter, TTL handles expiry
    return True


def reset_rate_limited_log() -> None:
    """Forget every remembered message."""
    with _log_cache_lock:
        _log_cache.clear()
