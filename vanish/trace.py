"""
trace.py

Execution traces: named, row-indexed columns of field elements.

A Trace is immutable once built. Columns are stored as tuples of Fr and
addressed by Handle(module, name). Reads outside a column are undefined
(None), never zero; the constraint layer relies on that to skip rows whose
neighbour does not exist.

Trace files follow the layout produced by the tracer:

    {"Trace": {"<module>": {"<column>": [v0, v1, ...], ...}, ...}}

Keys "Trace" and "Assignment" are transparent at any depth; an array is a
column named by the last two keys of its path. Values are JSON integers or
decimal / 0x-hex strings.
"""

from __future__ import annotations

import hashlib
import json
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .canonical import canonical_bytes
from .expression import BOOLEAN, Handle, INTEGER, MAIN_MODULE
from .field import Fr

_DEBUG_ENABLED = os.getenv("VANISH_DEBUG", "0") == "1"

TRANSPARENT_KEYS = {"Trace", "Assignment"}


def _debug_print(*args, **kwargs):
    """Print only if debug is enabled."""
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


# -------------------------------------------------------------------------
# Exceptions
# -------------------------------------------------------------------------


class TraceError(Exception):
    """Base class for trace-related errors."""


class BadTraceError(TraceError):
    """Raised when a trace file is malformed or violates a column type."""


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def _parse_column(handle: Handle, values: Sequence[Any], t: str) -> Tuple[Fr, ...]:
    out = []
    for i, v in enumerate(values):
        if isinstance(v, bool) or not isinstance(v, (int, str)):
            raise BadTraceError(f"ERR_INVALID_NUMBER: expected numeric value at {handle}[{i}], found {v!r}")
        try:
            x = Fr.from_literal(v)
        except ValueError as e:
            raise BadTraceError(f"{e} at {handle}[{i}]")
        if t == BOOLEAN and not (x.is_zero() or x.is_one()):
            raise BadTraceError(f"ERR_NOT_BOOLEAN: expected bool at {handle}[{i}], found {x}")
        out.append(x)
    return tuple(out)


def _next_power_of_two(n: int) -> int:
    p = 1
    while p < n:
        p <<= 1
    return p


# -------------------------------------------------------------------------
# Trace
# -------------------------------------------------------------------------


class Trace:
    """
    Immutable set of columns.

    `warnings` collects non-fatal problems found while loading (columns the
    constraint set does not know about, paths too short to name a column).
    """

    def __init__(self, columns: Mapping[Handle, Sequence[Fr]], warnings: Iterable[str] = ()):
        self._columns: Dict[Handle, Tuple[Fr, ...]] = {
            h: tuple(Fr.from_literal(v) for v in vs) for h, vs in columns.items()
        }
        self.warnings: Tuple[str, ...] = tuple(warnings)
        self._hash: Optional[str] = None

    # --- construction ---

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, Sequence[Any]],
        module: str = MAIN_MODULE,
        types: Optional[Mapping[str, str]] = None,
    ) -> "Trace":
        """Build a trace from `{column_name: values}` in a single module."""
        types = types or {}
        parsed = {}
        for name, values in columns.items():
            h = Handle(module, name)
            parsed[h] = _parse_column(h, values, types.get(name, INTEGER))
        return cls(parsed)

    @classmethod
    def from_json(cls, obj: Any, columns: Optional[Mapping[Handle, str]] = None) -> "Trace":
        """
        Load a trace from a decoded JSON document.

        If `columns` (handle -> type) is given, arrays that do not match a
        declared column are skipped with a warning and boolean columns are
        type-checked.
        """
        found: Dict[Handle, Tuple[Fr, ...]] = {}
        warnings: List[str] = []

        def fill(v, path):
            if isinstance(v, dict):
                for k, sub in v.items():
                    fill(sub, path if k in TRANSPARENT_KEYS else path + [k])
            elif isinstance(v, list):
                if len(path) < 2:
                    warnings.append(f"path too short to name a column: {path}")
                    return
                h = Handle(path[-2], path[-1])
                if columns is not None and h not in columns:
                    known_modules = {c.module for c in columns}
                    if h.module not in known_modules:
                        warnings.append(f"module `{h.module}` does not exist in constraints")
                    else:
                        warnings.append(f"column `{h}` does not exist in constraints")
                    return
                t = columns.get(h, INTEGER) if columns is not None else INTEGER
                found[h] = _parse_column(h, v, t)
            # scalars and nulls carry no column data

        fill(obj, [])
        for w in warnings:
            _debug_print(f"[trace] warning: {w}")
        return cls(found, warnings)

    @classmethod
    def from_file(cls, path: str, columns: Optional[Mapping[Handle, str]] = None) -> "Trace":
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BadTraceError(f"ERR_TRACE_FORMAT: while reading `{path}`: {e}")
        return cls.from_json(obj, columns)

    # --- access ---

    def read(self, handle: Handle, row: int) -> Optional[Fr]:
        """Value of `handle` at `row`; None outside the column or for unknown columns."""
        col = self._columns.get(handle)
        if col is None or row < 0 or row >= len(col):
            return None
        return col[row]

    def column(self, handle: Handle) -> Tuple[Fr, ...]:
        try:
            return self._columns[handle]
        except KeyError:
            raise TraceError(f"ERR_COLUMN_MISSING: column `{handle}` is not in the trace")

    def handles(self) -> List[Handle]:
        return list(self._columns)

    def __contains__(self, handle: Handle) -> bool:
        return handle in self._columns

    def __len__(self) -> int:
        """Number of rows: the length of the longest column."""
        return max((len(c) for c in self._columns.values()), default=0)

    def lengths(self) -> Dict[Handle, int]:
        return {h: len(c) for h, c in self._columns.items()}

    # --- transformations ---

    def padded(self) -> "Trace":
        """Front-pad every column with zeros to the next power of two of the longest one."""
        pad_to = _next_power_of_two(len(self))
        return Trace(
            {h: (Fr.zero(),) * (pad_to - len(c)) + c for h, c in self._columns.items()},
            self.warnings,
        )

    def to_dict(self) -> Dict[str, Dict[str, List[int]]]:
        out: Dict[str, Dict[str, List[int]]] = {}
        for h, c in sorted(self._columns.items(), key=lambda kv: (kv[0].module, kv[0].name)):
            out.setdefault(h.module, {})[h.name] = [x.value for x in c]
        return out

    def trace_hash(self) -> str:
        """SHA-256 of the canonical JSON form; cached, the trace never changes."""
        if self._hash is None:
            self._hash = hashlib.sha256(canonical_bytes(self.to_dict())).hexdigest()
        return self._hash
