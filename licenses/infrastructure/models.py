"""
License model.
"""
from django.db import models


class License(models.Model):
    """
    The license key an operator entered for a product.

    `status` caches the last evaluation; it is never authoritative.
    """

    STATUS_CHOICES = [
        ("inactive", "Inactive"),
        ("valid", "Valid"),
        ("invalid", "Invalid"),
        ("expired", "Expired"),
        ("grace_period", "Grace period"),
    ]

    product = models.CharField(max_length=50, unique=True)
    key = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="inactive")
    expires_at = models.DateTimeField(null=True, blank=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "licenses"
        ordering = ["product"]

    def __str__(self):
        return f"{self.product} ({self.status})"
