"""
Rate limits module - Time-windowed attempt throttling.

This module handles:
- RateLimitRecord entity and RateLimitDecision value
- RateLimiter service (check, record, cleanup)
- Persistence adapters for attempt counters
"""
