# app/utils.py
"""Shared utilities: logging setup and a retry decorator."""
import logging
import time
from functools import wraps

from .config import get_settings


def get_logger(name=__name__):
    level = get_settings().log_level
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("domain-marketplace")

def retry(exceptions, tries=3, delay=1, backoff=2, logger=logger):
    """Call the wrapped function up to `tries` times, sleeping `delay`
    seconds (multiplied by `backoff` each round) between failed attempts.
    The last failure propagates."""
    def deco_retry(f):
        @wraps(f)
        def f_retry(*args, **kwargs):
            wait = delay
            for attempt in range(1, max(tries, 1)):
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("Attempt %d/%d of %s failed: %s, retrying in %s sec",
                                   attempt, tries, f.__name__, e, wait)
                    time.sleep(wait)
                    wait *= backoff
            return f(*args, **kwargs)
        return f_retry
    return deco_retry
