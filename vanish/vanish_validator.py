"""
vanish_validator.py

Validation layer for the Vanish checker.

Inspects a compiled constraint set against a trace BEFORE any row is
evaluated and decides whether checking is meaningful:

- every column a constraint reads is present in the trace
- the trace is not empty
- every explicit constraint domain lies inside the trace

It does NOT evaluate constraints. If ok is False, the checker MUST NOT
report the constraint set as satisfied.
"""

import os
from typing import Any, Dict, Iterable, List, Optional

from .constraints import ConstraintSet
from .expression import column_handles
from .trace import Trace

_DEBUG_ENABLED = os.getenv("VANISH_DEBUG", "0") == "1"


def _debug_print(*args, **kwargs):
    """Print only if debug is enabled."""
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


ValidationResult = Dict[str, Any]


# Lower number = higher priority (reported first)
ERROR_PRIORITY = {
    "ERR_EMPTY_TRACE": 1,
    "ERR_COLUMN_MISSING": 2,
    "ERR_DOMAIN_OUT_OF_RANGE": 3,
}


def _sort_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort errors by priority (lowest first) for deterministic reporting."""
    def key(e):
        code = e.get("code", "")
        return (ERROR_PRIORITY.get(code, 999), code, e.get("detail", ""))
    return sorted(errors, key=key)


def resolve_row(row: int, length: int) -> int:
    """Negative domain rows count from the end of the trace."""
    return row + length if row < 0 else row


def validate_constraint_set(cs: ConstraintSet, trace: Trace, names: Optional[Iterable[str]] = None) -> ValidationResult:
    """
    Validate `cs` against `trace`. When `names` is given, only those
    constraints are inspected.
    """
    errors: List[Dict[str, str]] = []
    warnings: List[Dict[str, str]] = []

    length = len(trace)
    if length == 0:
        errors.append({"code": "ERR_EMPTY_TRACE", "detail": "Trace holds no rows"})

    used = set()
    missing = set()
    selected = set(names) if names is not None else None
    for c in cs.constraints:
        if selected is not None and c.name not in selected:
            continue
        handles = column_handles(c.expr)
        used |= handles
        for h in sorted(handles - set(trace.handles()), key=str):
            if h not in missing:
                missing.add(h)
                errors.append({"code": "ERR_COLUMN_MISSING", "detail": f"Column `{h}` used by `{c.name}` is not in the trace"})

        domain = getattr(c, "domain", None)
        if domain and length:
            for row in domain:
                if not 0 <= resolve_row(row, length) < length:
                    errors.append({
                        "code": "ERR_DOMAIN_OUT_OF_RANGE",
                        "detail": f"Row {row} of `{c.name}` is outside a trace of {length} rows",
                    })

    lengths = trace.lengths()
    distinct = {n for h, n in lengths.items() if h in used}
    if len(distinct) > 1:
        warnings.append({
            "code": "WARN_LENGTH_MISMATCH",
            "detail": "Columns have different lengths: "
            + ", ".join(f"{h}={n}" for h, n in sorted(lengths.items(), key=lambda kv: str(kv[0])) if h in used),
        })

    unused = set(cs.columns) - used if selected is None else set()
    for h in sorted(unused, key=str):
        warnings.append({"code": "WARN_UNUSED_COLUMN", "detail": f"Column `{h}` is declared but never constrained"})

    for w in trace.warnings:
        warnings.append({"code": "WARN_TRACE", "detail": w})

    errors = _sort_errors(errors)
    _debug_print(f"[validator] {len(errors)} errors, {len(warnings)} warnings")

    return {
        "ok": not errors,
        "errors": errors,
        "warnings": warnings,
    }
