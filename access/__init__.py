"""
Access module - Access Gate facade.

Composes the license evaluator, rate limiter and token store into the
decisions request handlers ask for.
"""
