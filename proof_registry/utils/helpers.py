"""
Proof Registry Helper Functions

Hashing and time utilities. The registry stores hashes only, never content,
so callers hash documents locally with these helpers and submit the result.
"""

import hashlib
from datetime import datetime, timezone
from typing import Optional


def hash_content(content: bytes) -> str:
    """
    SHA-256 of binary content, in canonical registry form.

    Args:
        content: Bytes to hash

    Returns:
        str: ``0x``-prefixed 64-digit hex digest
    """
    return f"0x{hashlib.sha256(content).hexdigest()}"


def hash_text(text: str) -> str:
    """SHA-256 of a UTF-8 string, in canonical registry form."""
    return hash_content(text.encode('utf-8'))


def hash_file(filepath: str) -> str:
    """
    Hash a file's contents without loading it whole.

    Args:
        filepath: Path to the file

    Returns:
        str: ``0x``-prefixed SHA-256 digest
    """
    hasher = hashlib.sha256()
    with open(filepath, 'rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            hasher.update(chunk)
    return f"0x{hasher.hexdigest()}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: Optional[datetime] = None) -> str:
    """ISO 8601 with timezone; current UTC time if dt is None."""
    if dt is None:
        dt = utc_now()
    return dt.isoformat()


def parse_timestamp(timestamp: str) -> datetime:
    """
    Parse an ISO 8601 timestamp string.

    Args:
        timestamp: ISO 8601 formatted timestamp

    Returns:
        datetime: Parsed datetime object with timezone
    """
    # Handle 'Z' suffix
    if timestamp.endswith('Z'):
        timestamp = timestamp[:-1] + '+00:00'
    return datetime.fromisoformat(timestamp)


def truncate_hash(hash_str: str, length: int = 16) -> str:
    """
    Shorten a hash for display.

    Args:
        hash_str: Full hash string (``0x`` or ``sha256:`` prefix allowed)
        length: Number of hex digits to keep

    Returns:
        str: Truncated hash with ellipsis
    """
    if ':' in hash_str:
        _, hash_part = hash_str.split(':', 1)
    elif hash_str[:2].lower() == '0x':
        hash_part = hash_str[2:]
    else:
        hash_part = hash_str

    if len(hash_part) <= length:
        return hash_part
    return f"{hash_part[:length]}..."
