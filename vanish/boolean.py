"""
boolean.py

Boolean Algebra Layer.

Field elements carry truth values under the convention 1 = true, 0 = false.
Two kinds of result coexist and must not be confused:

    vanishing   satisfied iff the value is 0 (eq, is-binary, vanishes)
    boolean     a value in {0, 1} (is-zero, is-not-zero, and/or/xor on
                boolean operands)

`not_` is the negation primitive: 1 - e. It is only meaningful on a
boolean operand, so anything that negates a vanishing expression (neq)
first normalises it to a boolean with is-not-zero.
"""

from .expression import Builtin, call, lift


def is_zero(e):
    """1 iff e = 0, else 0. Relies on inv(0) = 0."""
    e = lift(e)
    return call(Builtin.SUB, 1, call(Builtin.MUL, e, call(Builtin.INV, e)))


def is_not_zero(e):
    """0 iff e = 0, else 1."""
    return call(Builtin.IF_ZERO, e, 0, 1)


def eq(a, b):
    """Vanishes iff a = b. Not a boolean."""
    return call(Builtin.SUB, a, b)


def not_(e):
    """Boolean negation; e must already be {0,1}-valued."""
    return call(Builtin.NOT, e)


def neq(a, b):
    """Vanishes iff a != b."""
    return not_(is_not_zero(eq(a, b)))


def and_(e0, e1):
    return call(Builtin.MUL, e0, e1)


def or_(e0, e1):
    # De Morgan
    return not_(and_(not_(e0), not_(e1)))


def xor(e0, e1):
    e0, e1 = lift(e0), lift(e1)
    return call(Builtin.SUB, call(Builtin.ADD, e0, e1), call(Builtin.MUL, 2, e0, e1))


def is_binary(e):
    """Vanishes iff e is 0 or 1."""
    e = lift(e)
    return call(Builtin.MUL, e, call(Builtin.SUB, 1, e))


def vanishes(e):
    return lift(e)


# ------------------------------------------------------------------
# Selection on equality
# ------------------------------------------------------------------

def if_eq(a, b, then):
    """`then` where a = b, 0 elsewhere."""
    return call(Builtin.IF_ZERO, eq(a, b), then)


def if_eq_else(a, b, then, otherwise):
    return call(Builtin.IF_ZERO, eq(a, b), then, otherwise)


def if_not_eq(a, b, then):
    return call(Builtin.IF_NOT_ZERO, eq(a, b), then)
