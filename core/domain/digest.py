"""
One-way digests used as stable, privacy-preserving lookup keys.
"""
import hashlib


def digest(*parts) -> str:
    """
    SHA-256 hex digest of the given parts joined with ':'.

    Args:
        *parts: Values to combine (converted with str())

    Returns:
        64-character hex digest
    """
    joined = ":".join(str(part) for part in parts)
    return hashlib.sha256(joined.encode()).hexdigest()


def normalize_client_address(client_address: str) -> str:
    """Strip and lower-case a client address so formatting variants collide."""
    return (client_address or "").strip().lower()
