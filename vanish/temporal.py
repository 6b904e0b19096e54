"""
temporal.py

Temporal Relation Layer: relations between a column's value at the current
row and at an adjacent row.

Everything here rests on `shift`, whose reads outside the trace are
undefined rather than zero. Constancy exists in both directions so that a
structural constraint can pick the one that stays inside the trace at a
segment edge:

    didnt-change       current row vs previous row
    remains-constant   next row vs current row
"""

from .boolean import eq, neq
from .expression import Builtin, call, lift


def shift(e, offset: int):
    return call(Builtin.SHIFT, e, offset)


def next_(e):
    return shift(e, 1)


def prev(e):
    return shift(e, -1)


def will_eq(e0, e1):
    """Vanishes iff next(e0) = e1."""
    return eq(next_(e0), e1)


def was_eq(e0, e1):
    """Vanishes iff prev(e0) = e1."""
    return eq(prev(e0), e1)


def inc(e0, offset):
    """Vanishes iff next(e0) = e0 + offset."""
    e0 = lift(e0)
    return will_eq(e0, call(Builtin.ADD, e0, offset))


def dec(e0, offset):
    """Vanishes iff next(e0) = e0 - offset."""
    e0 = lift(e0)
    return will_eq(e0, call(Builtin.SUB, e0, offset))


def didnt_change(e0):
    e0 = lift(e0)
    return eq(e0, prev(e0))


def did_change(e0):
    e0 = lift(e0)
    return neq(e0, prev(e0))


def remains_constant(e0):
    e0 = lift(e0)
    return will_eq(e0, e0)
