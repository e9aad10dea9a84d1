import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from shop.core.config import settings

# Initialize logger
logger = logging.getLogger(__name__)

# RATE LIMITER CONFIGURATION
# key_func=get_remote_address: Identifies callers by their IP address.
# Point RATE_LIMIT_STORAGE_URI at a shared store (e.g. redis://) when several
# replicas of the user service must share their counters.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)
