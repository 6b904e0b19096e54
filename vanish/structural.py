"""
structural.py

Structural Constraint Layer: counter- and stamp-driven invariants.

Each constraint here is correct only under preconditions it does not
verify. The matching `*_requirements` function returns those preconditions
as `Requirement` values, to be added next to the constraint with
`ConstraintSet.add_guarded`:

    counter-constancy    none
    byte-decomposition   bytes < 256
    plateau-constraint   C counter-constant w.r.t. CT (and X binary, if a flag)
    stamp-constancy      none

Violating a precondition is never detected here. It shows up as an unsound
or overly strict constraint once the checker asserts the expression vanishes.
"""

from typing import Tuple

from .boolean import eq, if_eq_else, is_binary
from .constraints import IN_RANGE, Requirement
from .expression import Builtin, call, lift
from .temporal import didnt_change, prev, remains_constant

BYTE_BOUND = 256


def counter_constancy(ct, x):
    """X may only change on rows where CT is zero."""
    return call(Builtin.IF_NOT_ZERO, ct, didnt_change(x))


def byte_decomposition(ct, acc, bytes_):
    """
    acc is the big-endian accumulation of `bytes_`, one byte per row,
    restarting whenever CT is zero.
    """
    acc = lift(acc)
    return call(
        Builtin.IF_ZERO,
        ct,
        eq(acc, bytes_),
        eq(acc, call(Builtin.ADD, call(Builtin.MUL, BYTE_BOUND, prev(acc)), bytes_)),
    )


def plateau_constraint(ct, x, c):
    """
    X plateaus within each CT segment and steps by one when CT reaches C.

    Checked in order:
        C = 0        X = 1
        CT = 0       X = 0
        CT = C       X = prev(X) + 1
        otherwise    X unchanged
    """
    x = lift(x)
    return call(
        Builtin.IF_ZERO,
        c,
        eq(x, 1),
        call(
            Builtin.IF_ZERO,
            ct,
            x,
            if_eq_else(ct, c, eq(x, call(Builtin.ADD, prev(x), 1)), didnt_change(x)),
        ),
    )


def stamp_constancy(stamp, c):
    """C may only change into the next row where STAMP also changes."""
    return call(Builtin.IF_ZERO, remains_constant(stamp), remains_constant(c))


# ------------------------------------------------------------------
# Preconditions
# ------------------------------------------------------------------

def counter_constancy_requirements(ct, x) -> Tuple[Requirement, ...]:
    return ()


def byte_decomposition_requirements(ct, acc, bytes_) -> Tuple[Requirement, ...]:
    return (Requirement("byte-range", lift(bytes_), kind=IN_RANGE, bound=BYTE_BOUND),)


def plateau_requirements(ct, x, c, binary: bool = False) -> Tuple[Requirement, ...]:
    reqs = [Requirement("counter-constant", counter_constancy(ct, c))]
    if binary:
        reqs.append(Requirement("binary", is_binary(x)))
    return tuple(reqs)


def stamp_constancy_requirements(stamp, c) -> Tuple[Requirement, ...]:
    return ()
