"""
Hashing Module - SHA256 Fingerprints

Provides canonical JSON serialization and SHA256 hashing of reconciliation
output. Two runs over the same fills must produce the same fingerprint.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List


def canonical_json_dumps(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Ensures deterministic serialization for hashing:
    - Keys sorted alphabetically
    - No whitespace
    - Decimals kept as exact strings (no float rounding)
    - Dates in ISO format

    Args:
        obj: Object to serialize (dict, list, or primitive)

    Returns:
        Canonical JSON string

    Example:
        >>> canonical_json_dumps({"size": Decimal("1.50"), "date": date(2024, 1, 15)})
        '{"date":"2024-01-15","size":"1.50"}'
    """
    def default_handler(o):
        if isinstance(o, Decimal):
            return str(o)
        elif isinstance(o, (date, datetime)):
            return o.isoformat()
        elif isinstance(o, Enum):
            return o.value
        elif hasattr(o, 'to_dict'):
            return o.to_dict()
        else:
            raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")

    return json.dumps(
        obj,
        sort_keys=True,
        separators=(',', ':'),
        default=default_handler,
        ensure_ascii=True
    )


def calculate_sha256(data: Any) -> str:
    """
    Calculate SHA256 hash of data.

    Args:
        data: Data to hash (will be serialized to JSON)

    Returns:
        SHA256 hex digest prefixed with 'sha256:'
    """
    json_str = canonical_json_dumps(data)
    hash_obj = hashlib.sha256(json_str.encode('utf-8'))
    return f"sha256:{hash_obj.hexdigest()}"


def verify_hash(data: Any, expected_hash: str) -> bool:
    """Check that data still hashes to expected_hash."""
    return calculate_sha256(data) == expected_hash


def fingerprint_matches(grouped: Dict[str, List[Any]]) -> str:
    """
    Seal a reconciliation result.

    Args:
        grouped: Product -> ordered list of LotMatch objects

    Returns:
        'sha256:...' digest over every match, in output order
    """
    payload = {
        product: [match.to_dict() for match in matches]
        for product, matches in grouped.items()
    }
    return calculate_sha256(payload)
