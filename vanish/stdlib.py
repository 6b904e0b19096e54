"""
stdlib.py

Front-end names of the derived combinators.

Every name in operator_lexicon.STDLIB_OPS resolves here to a Python
function of the three layers. The compiler calls them with already-reduced
argument expressions, so nothing is expanded textually.
"""

from typing import Callable, Dict, NamedTuple

from . import boolean, structural, temporal
from .operator_lexicon import STDLIB_OPS


class Combinator(NamedTuple):
    name: str
    func: Callable
    arity: int


def _c(name, func, arity):
    return name, Combinator(name, func, arity)


STDLIB: Dict[str, Combinator] = dict([
    # Boolean
    _c("is-zero", boolean.is_zero, 1),
    _c("is-not-zero", boolean.is_not_zero, 1),
    _c("eq", boolean.eq, 2),
    _c("neq", boolean.neq, 2),
    _c("and", boolean.and_, 2),
    _c("or", boolean.or_, 2),
    _c("xor", boolean.xor, 2),
    _c("is-binary", boolean.is_binary, 1),
    _c("if-eq", boolean.if_eq, 3),
    _c("if-eq-else", boolean.if_eq_else, 4),
    _c("if-not-eq", boolean.if_not_eq, 3),
    _c("vanishes", boolean.vanishes, 1),
    # Temporal
    _c("next", temporal.next_, 1),
    _c("prev", temporal.prev, 1),
    _c("will-eq", temporal.will_eq, 2),
    _c("was-eq", temporal.was_eq, 2),
    _c("inc", temporal.inc, 2),
    _c("dec", temporal.dec, 2),
    _c("didnt-change", temporal.didnt_change, 1),
    _c("did-change", temporal.did_change, 1),
    _c("remains-constant", temporal.remains_constant, 1),
    # Structural
    _c("counter-constancy", structural.counter_constancy, 2),
    _c("byte-decomposition", structural.byte_decomposition, 3),
    _c("plateau-constraint", structural.plateau_constraint, 3),
    _c("stamp-constancy", structural.stamp_constancy, 2),
])

# The lexicon and the registry must agree exactly
if set(STDLIB) != STDLIB_OPS:
    raise ImportError(f"stdlib registry out of sync with lexicon: {sorted(set(STDLIB) ^ STDLIB_OPS)}")


def apply(name: str, args):
    """Apply the combinator `name` to reduced argument expressions."""
    comb = STDLIB[name]
    if len(args) != comb.arity:
        raise TypeError(
            f"ERR_ARITY: `{name}` expected {comb.arity} argument{'s' if comb.arity > 1 else ''}, "
            f"but received {len(args)}"
        )
    return comb.func(*args)
