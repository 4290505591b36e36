from __future__ import annotations

from typing import Any

import base58

from .project_constants import PUBKEY_LEN


def is_valid_address(value: Any) -> bool:
    """True iff value is a base-58 string decoding to a 32-byte public key."""
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        raw = base58.b58decode(value)
    except ValueError:
        return False
    return len(raw) == PUBKEY_LEN
