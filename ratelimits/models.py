"""
Model registration for the ratelimits app.
"""
from ratelimits.infrastructure.models import RateLimitEntry  # noqa: F401
