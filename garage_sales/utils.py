"""Shared utilities such as logging and retry decorators."""
import os
import logging
import time
from functools import wraps
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("garage-sales")

def retry(exceptions, tries=3, delay=1, backoff=2, max_delay=None, logger=logger, sleep=time.sleep):
    """Retry the wrapped call on `exceptions` with exponential backoff.

    The last attempt is made outside the loop so its exception propagates.
    `max_delay` caps the wait between attempts.
    """
    def deco_retry(f):
        @wraps(f)
        def f_retry(*args, **kwargs):
            mtries, mdelay = tries, delay
            while mtries > 1:
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("Retryable error in %s: %s, retrying in %s sec", f.__name__, e, mdelay)
                    sleep(mdelay)
                    mtries -= 1
                    mdelay *= backoff
                    if max_delay is not None:
                        mdelay = min(mdelay, max_delay)
            return f(*args, **kwargs)
        return f_retry
    return deco_retry
