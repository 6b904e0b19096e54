"""
vanish/canonical.py - Shared Canonicalization Logic
"""
import hashlib
import json
import re
import unicodedata
from typing import Any

_COMMENT_RE = re.compile(r";[^\n]*")


def canonicalize_source(source: str) -> str:
    """
    Canonicalize constraint source text for hashing and cache keys.

    Rules:
        - Unicode NFKC normalization.
        - `;` comments removed.
        - Whitespace runs collapsed to a single ASCII space.
        - Spaces around parentheses removed.

    Ensures formatting-only edits map to the same source hash.
    """
    if source is None:
        return ""

    normalized = unicodedata.normalize("NFKC", source)
    normalized = _COMMENT_RE.sub("", normalized)
    canonical = " ".join(normalized.split())
    canonical = re.sub(r"\s*\(\s*", "(", canonical)
    canonical = re.sub(r"\s*\)", ")", canonical)
    return canonical


def _check_no_floats(obj: Any):
    if isinstance(obj, float):
        raise ValueError("ERR_INVALID_NUMBER: floats are disallowed in canonical data; field values are integers")
    elif isinstance(obj, dict):
        for v in obj.values():
            _check_no_floats(v)
    elif isinstance(obj, (list, tuple)):
        for v in obj:
            _check_no_floats(v)


def canonical_json(obj: Any, *, reject_floats: bool = True) -> str:
    """
    Canonical JSON serialization (vanish-canonical-v1):
        - UTF-8 (ensure_ascii=True for safety)
        - sorted keys
        - no whitespace separation
        - reject NaN/Infinity (allow_nan=False)
        - reject floats unless told otherwise; traces and constraint
          sets only ever hold integers
    """
    if reject_floats:
        _check_no_floats(obj)
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, allow_nan=False)


def canonical_bytes(obj: Any) -> bytes:
    """UTF-8 bytes of the canonical JSON string."""
    return canonical_json(obj).encode("utf-8")


def constraint_set_hash(constraint_set) -> str:
    """SHA-256 of a compiled constraint set, independent of source formatting."""
    return hashlib.sha256(canonical_bytes(constraint_set.to_dict())).hexdigest()
