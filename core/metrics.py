"""
Prometheus metrics for the access-control core.

Custom metrics for denials, lockouts, token usage and storage health.
"""

from prometheus_client import Counter

# Decision metrics
access_denials_total = Counter(
    "access_denials_total",
    "Total denied access decisions",
    ["component", "reason"],
)

rate_limit_blocks_total = Counter(
    "rate_limit_blocks_total",
    "Total identifiers moved into the blocked state",
    ["action"],
)

# Token metrics
access_tokens_issued_total = Counter(
    "access_tokens_issued_total",
    "Total access tokens issued",
)

access_tokens_consumed_total = Counter(
    "access_tokens_consumed_total",
    "Total successful access token validations",
)

# Storage metrics
storage_errors_total = Counter(
    "storage_errors_total",
    "Total storage failures surfaced by repositories",
    ["component"],
)

fail_open_decisions_total = Counter(
    "fail_open_decisions_total",
    "Total decisions answered permissively because storage was unavailable",
    ["component"],
)

# Maintenance metrics
maintenance_removed_total = Counter(
    "maintenance_removed_total",
    "Total rows removed by periodic sweeps",
    ["kind"],
)
