"""
Model registration for the access_tokens app.
"""
from access_tokens.infrastructure.models import AccessToken  # noqa: F401
