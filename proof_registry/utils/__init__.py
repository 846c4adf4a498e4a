"""
Proof Registry Utilities Module

Helper functions for hashing content and handling timestamps.
"""

from proof_registry.utils.helpers import (
    hash_content,
    hash_text,
    hash_file,
    utc_now,
    format_timestamp,
    parse_timestamp,
    truncate_hash,
)

__all__ = [
    "hash_content",
    "hash_text",
    "hash_file",
    "utc_now",
    "format_timestamp",
    "parse_timestamp",
    "truncate_hash",
]
