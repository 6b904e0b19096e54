"""
constraints.py

Named constraints and the constraint set handed to the checker.

    Vanishes   expr = 0 on every row (or only on the rows of `domain`)
    InRange    0 <= expr < bound on every row, as a canonical integer

Structural constraints rely on preconditions they cannot check themselves.
Those preconditions are first-class `Requirement` values so an assembler
states them explicitly; `ConstraintSet.add_guarded` always adds them before
the constraint that depends on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .expression import Expression, Handle, INTEGER, lift, to_dict

VANISHES = "vanishes"
IN_RANGE = "in-range"


class ConstraintError(Exception):
    """Raised when a constraint set is assembled inconsistently."""


@dataclass(frozen=True)
class Vanishes:
    name: str
    expr: Expression
    domain: Optional[Tuple[int, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": VANISHES,
            "name": self.name,
            "domain": list(self.domain) if self.domain is not None else None,
            "expr": to_dict(self.expr),
        }


@dataclass(frozen=True)
class InRange:
    name: str
    expr: Expression
    bound: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": IN_RANGE,
            "name": self.name,
            "bound": self.bound,
            "expr": to_dict(self.expr),
        }


Constraint = Union[Vanishes, InRange]


@dataclass(frozen=True)
class Requirement:
    """A precondition of a structural constraint, named by `suffix`."""
    suffix: str
    expr: Expression
    kind: str = VANISHES
    bound: Optional[int] = None

    def constraint(self, owner: str) -> Constraint:
        name = f"{owner}:{self.suffix}"
        if self.kind == IN_RANGE:
            return InRange(name, self.expr, self.bound)
        return Vanishes(name, self.expr)


@dataclass
class ConstraintSet:
    """Columns, constants and constraints, in declaration order."""
    columns: Dict[Handle, str] = field(default_factory=dict)
    constants: Dict[str, int] = field(default_factory=dict)
    constraints: List[Constraint] = field(default_factory=list)

    def add_column(self, handle: Handle, t: str = INTEGER) -> None:
        if handle in self.columns:
            raise ConstraintError(f"ERR_ALREADY_DEFINED: column `{handle}` already exists")
        self.columns[handle] = t

    def add(self, constraint: Constraint) -> Constraint:
        if constraint.name in self.names():
            raise ConstraintError(f"ERR_ALREADY_DEFINED: constraint `{constraint.name}` already defined")
        self.constraints.append(constraint)
        return constraint

    def add_vanishing(self, name: str, expr, domain: Optional[Sequence[int]] = None) -> Constraint:
        return self.add(Vanishes(name, lift(expr), tuple(domain) if domain is not None else None))

    def add_in_range(self, name: str, expr, bound: int) -> Constraint:
        if bound <= 0:
            raise ConstraintError(f"ERR_INVALID_BOUND: range bound must be positive, got {bound}")
        return self.add(InRange(name, lift(expr), bound))

    def add_guarded(self, name: str, expr, requirements: Sequence[Requirement] = ()) -> List[Constraint]:
        """Add `requirements` first, then the constraint they protect."""
        added = [self.add(r.constraint(name)) for r in requirements]
        added.append(self.add_vanishing(name, expr))
        return added

    def names(self) -> List[str]:
        return [c.name for c in self.constraints]

    def get(self, name: str) -> Optional[Constraint]:
        for c in self.constraints:
            if c.name == name:
                return c
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": {str(h): t for h, t in self.columns.items()},
            "constants": dict(self.constants),
            "constraints": [c.to_dict() for c in self.constraints],
        }
