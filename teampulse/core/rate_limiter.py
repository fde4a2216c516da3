"""Rate limiter shared by the sign-in and sign-up routes."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per-process counters; each worker enforces its own limit
limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
