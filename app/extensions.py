"""
Holds shared Flask extension instances so routes can import configured
objects without circular dependencies.
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialized by create_app(); RATELIMIT_* config supplies storage and defaults.
# Care endpoints apply CARE_API_RATE_LIMIT on top of the default limits.

limiter = Limiter(key_func=get_remote_address)
