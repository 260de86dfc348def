"""Identity fingerprint digest.

The digest commits to the registered content without revealing it:
SHA-256 over the canonical JSON encoding (sorted keys, compact separators,
UTF-8) of the four committed fields, rendered as lowercase hex with a
``sha256:`` prefix.
"""

from __future__ import annotations

import hashlib
import json


def canonicalize(obj: dict) -> bytes:
    """Return the canonical JSON encoding of *obj* as UTF-8 bytes."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def identity_hash(name: str, email: str, principal: str, registration_time: int) -> str:
    """Compute the fingerprint stored with an identity at registration."""
    payload = canonicalize(
        {
            "name": name,
            "email": email,
            "principal": principal,
            "registration_time": registration_time,
        }
    )
    return "sha256:" + hashlib.sha256(payload).hexdigest()
