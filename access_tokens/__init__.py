"""
Access tokens module - Opaque share-link tokens.

This module handles:
- AccessToken entity and validation results
- AccessTokenStore service (issue, validate and consume, revoke, sweep)
- Persistence adapters keyed by the token digest
"""
