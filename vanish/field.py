"""
field.py

Prime field elements for Vanish constraint evaluation.

All column values and constants live in the BN254 scalar field. The only
non-textbook rule is the inverse:

    inverse(0) = 0

which is what lets `is-zero` be written as `1 - e * inv(e)` without any
partiality. Every operation here is total.

Numbers entering the field are validated like any other hash-bearing input:
    - ints are reduced modulo p (negative values wrap)
    - decimal and 0x-prefixed hexadecimal strings are accepted
    - floats and bools are rejected (ERR_INVALID_NUMBER)
"""

from __future__ import annotations

from typing import Union

# BN254 scalar field modulus
MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617


class Fr:
    """An element of the BN254 scalar field."""

    __slots__ = ("value",)

    def __init__(self, value: int = 0):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"ERR_INVALID_NUMBER: expected int, got {type(value).__name__}")
        self.value = value % MODULUS

    @classmethod
    def zero(cls) -> "Fr":
        return cls(0)

    @classmethod
    def one(cls) -> "Fr":
        return cls(1)

    @classmethod
    def from_literal(cls, literal: Union[int, str, "Fr"]) -> "Fr":
        """
        Parse a trace or source literal into a field element.

        Examples:
            >>> Fr.from_literal(12)
            Fr(12)
            >>> Fr.from_literal("0xff")
            Fr(255)
            >>> Fr.from_literal(-1) == MODULUS - 1
            True
        """
        if isinstance(literal, Fr):
            return literal
        if isinstance(literal, str):
            text = literal.strip()
            try:
                if text.lower().startswith(("0x", "-0x")):
                    return cls(int(text, 16))
                return cls(int(text, 10))
            except ValueError:
                raise ValueError(f"ERR_INVALID_NUMBER: invalid field literal {literal!r}")
        if isinstance(literal, float):
            raise ValueError("ERR_INVALID_NUMBER: floats are not field elements")
        return cls(literal)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __add__(self, other: "Fr") -> "Fr":
        return Fr(self.value + _coerce(other).value)

    def __sub__(self, other: "Fr") -> "Fr":
        return Fr(self.value - _coerce(other).value)

    def __mul__(self, other: "Fr") -> "Fr":
        return Fr(self.value * _coerce(other).value)

    def __neg__(self) -> "Fr":
        return Fr(-self.value)

    def __pow__(self, exponent: int) -> "Fr":
        if exponent < 0:
            raise ValueError(f"ERR_INVALID_NUMBER: negative exponent {exponent}")
        return Fr(pow(self.value, exponent, MODULUS))

    __radd__ = __add__
    __rmul__ = __mul__

    def __rsub__(self, other: "Fr") -> "Fr":
        return _coerce(other) - self

    def inverse(self) -> "Fr":
        """Multiplicative inverse, with the zero element mapped to itself."""
        if self.value == 0:
            return Fr(0)
        return Fr(pow(self.value, MODULUS - 2, MODULUS))

    # ------------------------------------------------------------------
    # Predicates & conversions
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.value == 0

    def is_one(self) -> bool:
        return self.value == 1

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __eq__(self, other) -> bool:
        if isinstance(other, Fr):
            return self.value == other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value == other % MODULUS
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"Fr({self.pretty()})"

    def __str__(self) -> str:
        return self.pretty()

    def pretty(self) -> str:
        """Render small negatives (p - k) as -k, which is how traces read best."""
        if self.value > MODULUS // 2:
            return str(self.value - MODULUS)
        return str(self.value)


def _coerce(x) -> Fr:
    if isinstance(x, Fr):
        return x
    return Fr(x)
