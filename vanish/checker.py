"""
checker.py

Asserts a compiled constraint set against a trace, row by row.

Rows are independent: a constraint's value at row i depends only on the
trace, never on the outcome at another row. A row where the value is
undefined (a shift left the trace) is skipped, not failed.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .constraints import Constraint, ConstraintSet, InRange
from .expression import Expression, column_handles, evaluate
from .field import Fr
from .trace import Trace
from .vanish_validator import resolve_row

_DEBUG_ENABLED = os.getenv("VANISH_DEBUG", "0") == "1"


def _debug_print(*args, **kwargs):
    """Print only if debug is enabled."""
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


@dataclass
class CheckSettings:
    """
    only:              check only these constraints (a requirement
                       `owner:suffix` is selected with its owner)
    skip:              never check these constraints
    continue_on_error: keep checking a constraint after its first failure
    trace_span:        rows of context captured on each side of a failure
    trace:             print every sub-expression evaluation to stderr
    pad:               front-pad the trace to the next power of two first
    """
    only: Optional[Sequence[str]] = None
    skip: Sequence[str] = ()
    continue_on_error: bool = False
    trace_span: int = 2
    trace: bool = False
    pad: bool = False

    def selects(self, name: str) -> bool:
        owner = name.split(":", 1)[0]
        if name in self.skip or owner in self.skip:
            return False
        if self.only is None:
            return True
        return name in self.only or owner in self.only


@dataclass(frozen=True)
class Failure:
    constraint: str
    row: int
    value: Fr
    span: Dict[str, List[Optional[int]]] = field(default_factory=dict)
    first_row: int = 0

    def describe(self) -> str:
        lines = [f"{self.constraint} failed at row {self.row}: {self.value.pretty()}"]
        width = max((len(h) for h in self.span), default=0)
        for h, values in self.span.items():
            cells = []
            for i, v in enumerate(values):
                text = "." if v is None else str(v)
                cells.append(f"[{text}]" if self.first_row + i == self.row else text)
            lines.append(f"    {h.ljust(width)}  " + " ".join(cells))
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        return {
            "constraint": self.constraint,
            "row": self.row,
            "value": self.value.value,
            "span": dict(self.span),
            "first_row": self.first_row,
        }


@dataclass
class CheckReport:
    failures: List[Failure] = field(default_factory=list)
    checked: List[str] = field(default_factory=list)
    undefined_rows: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failed_rows(self, name: str) -> List[int]:
        return [f.row for f in self.failures if f.constraint == name]


# ==========================================
# EVALUATION
# ==========================================

def _stderr_tracer(expr, row, value):
    shown = "undefined" if value is None else value.pretty()
    print(f"[{row}] {expr} = {shown}", file=sys.stderr)


def evaluate_rows(expr: Expression, trace: Trace, tracer=None) -> List[Optional[Fr]]:
    """Value of `expr` at every row of `trace`; None where undefined."""
    return [evaluate(expr, row, trace.read, tracer) for row in range(len(trace))]


def _span(c: Constraint, trace: Trace, row: int, width: int):
    first = max(0, row - width)
    last = min(len(trace), row + width + 1)
    span = {}
    for h in sorted(column_handles(c.expr), key=str):
        values = []
        for r in range(first, last):
            v = trace.read(h, r)
            values.append(None if v is None else v.value)
        span[str(h)] = values
    return span, first


def _rows(c: Constraint, length: int) -> Iterable[int]:
    domain = getattr(c, "domain", None)
    if domain is None:
        return range(length)
    return [r for r in (resolve_row(d, length) for d in domain) if 0 <= r < length]


def _violates(c: Constraint, value: Fr) -> bool:
    if isinstance(c, InRange):
        return value.value >= c.bound
    return not value.is_zero()


def check_constraint(c: Constraint, trace: Trace, settings: CheckSettings, report: CheckReport) -> None:
    tracer = _stderr_tracer if settings.trace else None
    undefined = 0
    for row in _rows(c, len(trace)):
        value = evaluate(c.expr, row, trace.read, tracer)
        if value is None:
            undefined += 1
            continue
        if _violates(c, value):
            span, first = _span(c, trace, row, settings.trace_span)
            report.failures.append(Failure(c.name, row, value, span, first))
            _debug_print(f"[check] {c.name} failed at row {row}")
            if not settings.continue_on_error:
                break
    if undefined:
        report.undefined_rows[c.name] = undefined


def check(cs: ConstraintSet, trace: Trace, settings: Optional[CheckSettings] = None) -> CheckReport:
    """Check every selected constraint of `cs` on `trace`."""
    settings = settings or CheckSettings()
    if settings.pad:
        trace = trace.padded()

    report = CheckReport()
    for c in cs.constraints:
        if not settings.selects(c.name):
            continue
        report.checked.append(c.name)
        check_constraint(c, trace, settings, report)
    _debug_print(f"[check] {len(report.checked)} constraints, {len(report.failures)} failures")
    return report
