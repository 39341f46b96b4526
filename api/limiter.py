"""
api/limiter.py -- The one slowapi Limiter for the whole app.

api/main.py mounts it through SlowAPIMiddleware and app.state.limiter;
api/routes/payments.py decorates POST /payments with PAYMENTS_RATE_LIMIT.
Both must see this same object, since the counters live in its storage.

Login and registration are not limited here: they go through the stateful
ThrottleGuard (auth/throttle.py), which adds the delay stage slowapi lacks.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per client address.
PAYMENTS_RATE_LIMIT = "30/minute"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
