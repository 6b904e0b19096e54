"""
expression.py

Constraint expression trees and their per-row semantics.

An expression is an immutable tree of:

    Const     a literal field element
    Column    a read of a trace column at the current row
    Funcall   a primitive builtin applied to sub-expressions
    ExprList  the result of `begin`: several constraints checked together

Evaluation is total. The only non-value outcome is *undefined* (None),
produced when a `shift` reads a row outside the trace. Undefined propagates
through arithmetic, stops at an unselected branch, and is ignored inside an
ExprList.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Any, Iterable, Optional, Set, Tuple, Union

from .field import Fr

MAIN_MODULE = "main"

INTEGER = "integer"
BOOLEAN = "boolean"


class EvaluationError(Exception):
    """Raised when an expression is not known at compile time."""


@dataclass(frozen=True)
class Handle:
    """A handle uniquely and absolutely names a column."""
    module: str
    name: str

    def __str__(self) -> str:
        return f"{self.module}.{self.name}"


class Builtin(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    EXP = "^"
    NEG = "neg"
    INV = "inv"
    NOT = "not"
    SHIFT = "shift"
    IF_ZERO = "if-zero"
    IF_NOT_ZERO = "if-not-zero"
    BEGIN = "begin"

    @property
    def arity(self) -> Tuple[int, Optional[int]]:
        """(minimum, maximum) argument count; None means unbounded."""
        return _ARITIES[self]

    def __str__(self) -> str:
        return self.value


_ARITIES = {
    Builtin.ADD: (2, None),
    Builtin.SUB: (2, None),
    Builtin.MUL: (2, None),
    Builtin.EXP: (2, 2),
    Builtin.NEG: (1, 1),
    Builtin.INV: (1, 1),
    Builtin.NOT: (1, 1),
    Builtin.SHIFT: (2, 2),
    Builtin.IF_ZERO: (2, 3),
    Builtin.IF_NOT_ZERO: (2, 3),
    Builtin.BEGIN: (1, None),
}


# ------------------------------------------------------------------
# Nodes
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Const:
    value: int

    @property
    def fr(self) -> Fr:
        return Fr(self.value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Column:
    handle: Handle
    t: str = INTEGER

    def __str__(self) -> str:
        return str(self.handle)


@dataclass(frozen=True)
class Funcall:
    func: Builtin
    args: Tuple["Expression", ...]

    def __str__(self) -> str:
        return "({} {})".format(self.func, " ".join(str(a) for a in self.args))


@dataclass(frozen=True)
class ExprList:
    items: Tuple["Expression", ...]

    def __str__(self) -> str:
        return "{{{}}}".format(" ".join(str(i) for i in self.items))


Expression = Union[Const, Column, Funcall, ExprList]

# Reads a column at an absolute row; returns None outside the trace.
ColumnReader = Callable[[Handle, int], Optional[Fr]]

# Observes every (expression, row, value) triple during evaluation.
Tracer = Callable[["Expression", int, Optional[Fr]], None]


def lift(x: Union[Expression, int, Fr]) -> Expression:
    """Accept plain ints and field elements wherever an expression is expected."""
    if isinstance(x, (Const, Column, Funcall, ExprList)):
        return x
    if isinstance(x, Fr):
        return Const(x.value)
    if isinstance(x, int) and not isinstance(x, bool):
        return Const(x)
    raise TypeError(f"cannot use {x!r} as an expression")


def call(func: Builtin, *args) -> Funcall:
    return Funcall(func, tuple(lift(a) for a in args))


def col(name: str, module: str = MAIN_MODULE, t: str = INTEGER) -> Column:
    return Column(Handle(module, name), t)


# ------------------------------------------------------------------
# Evaluation
# ------------------------------------------------------------------

def evaluate(
    expr: Expression,
    row: int,
    get: ColumnReader,
    tracer: Optional[Tracer] = None,
) -> Optional[Fr]:
    """
    Value of `expr` at `row`, or None when it is undefined there.
    """
    r = _evaluate(expr, row, get, tracer)
    if tracer is not None and not isinstance(expr, Const):
        tracer(expr, row, r)
    return r


def _evaluate(expr, row, get, tracer):
    if isinstance(expr, Const):
        return expr.fr
    if isinstance(expr, Column):
        return get(expr.handle, row)
    if isinstance(expr, ExprList):
        for item in expr.items:
            x = evaluate(item, row, get, tracer)
            if x is not None and not x.is_zero():
                return x
        return Fr.zero()

    func, args = expr.func, expr.args

    if func in (Builtin.IF_ZERO, Builtin.IF_NOT_ZERO):
        cond = evaluate(args[0], row, get, tracer)
        if cond is None:
            return None
        if cond.is_zero() == (func is Builtin.IF_ZERO):
            return evaluate(args[1], row, get, tracer)
        if len(args) > 2:
            return evaluate(args[2], row, get, tracer)
        return Fr.zero()

    if func is Builtin.SHIFT:
        return evaluate(args[0], row + pure_eval(args[1]), get, tracer)

    if func is Builtin.EXP:
        base = evaluate(args[0], row, get, tracer)
        if base is None:
            return None
        return base ** pure_eval(args[1])

    if func is Builtin.BEGIN:
        return _evaluate(ExprList(args), row, get, tracer)

    values = []
    for a in args:
        x = evaluate(a, row, get, tracer)
        if x is None:
            return None
        values.append(x)

    if func is Builtin.ADD:
        ax = Fr.zero()
        for x in values:
            ax = ax + x
        return ax
    if func is Builtin.SUB:
        ax = values[0]
        for x in values[1:]:
            ax = ax - x
        return ax
    if func is Builtin.MUL:
        ax = Fr.one()
        for x in values:
            ax = ax * x
        return ax
    if func is Builtin.NEG:
        return -values[0]
    if func is Builtin.INV:
        return values[0].inverse()
    if func is Builtin.NOT:
        return Fr.one() - values[0]
    raise EvaluationError(f"ERR_UNKNOWN_BUILTIN: {func}")


def pure_eval(expr: Expression) -> int:
    """Evaluate a compile-time known value as a plain (signed) integer."""
    if isinstance(expr, Const):
        return expr.value
    if isinstance(expr, Funcall):
        if expr.func is Builtin.ADD:
            return sum(pure_eval(a) for a in expr.args)
        if expr.func is Builtin.SUB:
            ax = pure_eval(expr.args[0])
            for a in expr.args[1:]:
                ax -= pure_eval(a)
            return ax
        if expr.func is Builtin.MUL:
            ax = 1
            for a in expr.args:
                ax *= pure_eval(a)
            return ax
        if expr.func is Builtin.NEG:
            return -pure_eval(expr.args[0])
    raise EvaluationError(f"ERR_NOT_CONSTANT: {expr} is not known at compile-time")


# ------------------------------------------------------------------
# Structural helpers
# ------------------------------------------------------------------

def children(expr: Expression) -> Tuple[Expression, ...]:
    if isinstance(expr, Funcall):
        return expr.args
    if isinstance(expr, ExprList):
        return expr.items
    return ()


def walk(expr: Expression) -> Iterable[Expression]:
    """Pre-order traversal."""
    stack = [expr]
    while stack:
        e = stack.pop()
        yield e
        stack.extend(reversed(children(e)))


def column_handles(expr: Expression) -> Set[Handle]:
    return {e.handle for e in walk(expr) if isinstance(e, Column)}


def size(expr: Expression) -> int:
    return sum(1 for _ in walk(expr))


def to_dict(expr: Expression) -> Dict[str, Any]:
    """JSON-ready form of an expression (see canonical.py)."""
    if isinstance(expr, Const):
        return {"const": expr.value}
    if isinstance(expr, Column):
        return {"column": str(expr.handle), "type": expr.t}
    if isinstance(expr, ExprList):
        return {"list": [to_dict(i) for i in expr.items]}
    return {"func": expr.func.value, "args": [to_dict(a) for a in expr.args]}
