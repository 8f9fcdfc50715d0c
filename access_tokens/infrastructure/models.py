"""
Access token Django ORM model.

This is the infrastructure layer model for share-link tokens.
Domain entities are in access_tokens.domain.access_token.
"""
from django.db import models


class AccessToken(models.Model):
    """
    Share-link token, stored by the digest of its secret.

    max_uses == 0 means unlimited.
    """

    token_hash = models.CharField(max_length=64, unique=True)
    target_id = models.BigIntegerField(db_index=True)
    issued_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)
    max_uses = models.PositiveIntegerField(default=0)
    use_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "access_tokens"
        ordering = ["-created_at"]

    def __str__(self):
        return f"token for {self.target_id} ({self.use_count}/{self.max_uses or 'unlimited'})"
