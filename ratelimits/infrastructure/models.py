"""
Rate limit Django ORM model.

This is the infrastructure layer model for attempt counters.
Domain entities are in ratelimits.domain.rate_limit.
"""
from django.db import models


class RateLimitEntry(models.Model):
    """
    Attempt counter for one (action, client, target) identifier.

    The client address itself is never stored.
    """

    identifier = models.CharField(max_length=64, unique=True)
    action = models.CharField(max_length=100)
    target_id = models.BigIntegerField(default=0)
    attempts = models.PositiveIntegerField(default=0)
    window_start = models.DateTimeField(db_index=True)
    blocked_until = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "rate_limits"
        ordering = ["-window_start"]

    def __str__(self):
        return f"{self.action}:{self.target_id} ({self.attempts} attempts)"
