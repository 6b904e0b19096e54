"""
Structural constraints on the scenarios they were designed for.

Each constraint is checked on a satisfying trace and on traces with one
deviation, through the checker, so that undefined boundary rows are
treated exactly as in production.
"""

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import unittest

import pytest

from vanish import structural
from vanish.checker import CheckSettings, check
from vanish.constraints import IN_RANGE, ConstraintSet, InRange, Vanishes
from vanish.expression import col
from vanish.trace import Trace

CT, X, C, ACC, BYTE, STAMP = (col(n) for n in ("CT", "X", "C", "ACC", "BYTE", "STAMP"))
ALL_ROWS = CheckSettings(continue_on_error=True)


def failing_rows(expr, **columns):
    cs = ConstraintSet()
    cs.add_vanishing("c", expr)
    report = check(cs, Trace.from_columns(columns), ALL_ROWS)
    return report.failed_rows("c")


def accumulate(words):
    """CT, ACC and BYTE columns for a list of big-endian byte words."""
    ct, acc, byte = [], [], []
    for word in words:
        total = 0
        for i, b in enumerate(word):
            total = total * 256 + b
            ct.append(i)
            acc.append(total)
            byte.append(b)
    return ct, acc, byte


# ==========================================
# COUNTER CONSTANCY
# ==========================================

class TestCounterConstancy(unittest.TestCase):
    def test_changes_only_at_counter_reset(self):
        self.assertEqual(failing_rows(structural.counter_constancy(CT, X), CT=[0, 1, 2, 0, 1], X=[9, 9, 9, 4, 4]), [])

    def test_change_mid_segment_fails_at_ct_one(self):
        rows = failing_rows(structural.counter_constancy(CT, X), CT=[0, 1, 2, 0, 1], X=[9, 8, 9, 4, 4])
        self.assertEqual(rows[0], 1)

    def test_first_row_never_reads_outside(self):
        # CT starts at a non-zero value: prev(X) is undefined at row 0, not a failure
        self.assertEqual(failing_rows(structural.counter_constancy(CT, X), CT=[1, 2], X=[3, 3]), [])


# ==========================================
# BYTE DECOMPOSITION
# ==========================================

class TestByteDecomposition(unittest.TestCase):
    def test_round_trip_with_resets(self):
        ct, acc, byte = accumulate([[0x12, 0x34, 0x56], [0xFF], [0x00, 0x01], [0xAB, 0xCD, 0xEF, 0x01]])
        self.assertEqual(acc[2], 0x123456)
        self.assertEqual(acc[-1], 0xABCDEF01)
        self.assertEqual(failing_rows(structural.byte_decomposition(CT, ACC, BYTE), CT=ct, ACC=acc, BYTE=byte), [])

    def test_little_endian_accumulator_fails(self):
        ct, acc, byte = accumulate([[0x12, 0x34]])
        acc[1] = 0x3412
        self.assertEqual(failing_rows(structural.byte_decomposition(CT, ACC, BYTE), CT=ct, ACC=acc, BYTE=byte), [1])

    def test_missing_reset_fails(self):
        ct, acc, byte = accumulate([[1, 2], [3, 4]])
        # Second word written as if it continued the first
        acc[2] = acc[1] * 256 + 3
        self.assertEqual(failing_rows(structural.byte_decomposition(CT, ACC, BYTE), CT=ct, ACC=acc, BYTE=byte)[0], 2)

    def test_requirement_bounds_bytes(self):
        (req,) = structural.byte_decomposition_requirements(CT, ACC, BYTE)
        self.assertEqual(req.kind, IN_RANGE)
        self.assertEqual(req.bound, structural.BYTE_BOUND)
        self.assertIsInstance(req.constraint("bytes"), InRange)
        self.assertEqual(req.constraint("bytes").name, "bytes:byte-range")

    def guarded_failures(self, ct, acc, byte):
        cs = ConstraintSet()
        cs.add_guarded("bd", structural.byte_decomposition(CT, ACC, BYTE),
                       structural.byte_decomposition_requirements(CT, ACC, BYTE))
        report = check(cs, Trace.from_columns({"CT": ct, "ACC": acc, "BYTE": byte}), ALL_ROWS)
        return [(f.constraint, f.row) for f in report.failures]

    def test_byte_too_large_fails_range(self):
        # ACC is consistent, so only the range requirement can catch it
        self.assertEqual(self.guarded_failures([0, 1], [1, 256 + 300], [1, 300]), [("bd:byte-range", 1)])

    def test_negative_byte_wraps_and_fails_range(self):
        self.assertEqual(self.guarded_failures([0, 1], [-1, -256 + 2], [-1, 2]), [("bd:byte-range", 0)])

    def test_largest_byte_passes(self):
        self.assertEqual(self.guarded_failures([0, 1], [255, 255 * 256 + 255], [255, 255]), [])


# ==========================================
# PLATEAU
# ==========================================

PLATEAU_CT = [0, 1, 2] * 3
PLATEAU_C = [2] * 9
PLATEAU_X = [0, 0, 1] * 3


def test_plateau_satisfied():
    expr = structural.plateau_constraint(CT, X, C)
    assert failing_rows(expr, CT=PLATEAU_CT, X=PLATEAU_X, C=PLATEAU_C) == []


@pytest.mark.parametrize("row,bad", [
    (0, 1),   # X must start a segment at 0
    (1, 1),   # X must hold through the interior
    (2, 0),   # X must step at CT = C
    (2, 2),   # by exactly one
    (3, 1),
    (7, 5),
    (8, 3),
])
def test_plateau_any_deviation_fails(row, bad):
    xs = list(PLATEAU_X)
    xs[row] = bad
    expr = structural.plateau_constraint(CT, X, C)
    assert row in failing_rows(expr, CT=PLATEAU_CT, X=xs, C=PLATEAU_C)


def test_plateau_inactive_level_forces_one():
    expr = structural.plateau_constraint(CT, X, C)
    assert failing_rows(expr, CT=[0, 1], X=[1, 1], C=[0, 0]) == []
    assert failing_rows(expr, CT=[0, 1], X=[1, 0], C=[0, 0]) == [1]


def test_plateau_requirements_come_first():
    reqs = structural.plateau_requirements(CT, X, C, binary=True)
    assert [r.suffix for r in reqs] == ["counter-constant", "binary"]

    cs = ConstraintSet()
    added = cs.add_guarded("plateau", structural.plateau_constraint(CT, X, C), reqs)
    assert [c.name for c in added] == ["plateau:counter-constant", "plateau:binary", "plateau"]
    assert cs.names()[-1] == "plateau"
    assert all(isinstance(c, Vanishes) for c in added)


def test_plateau_requirement_catches_varying_target():
    (counter_constant,) = structural.plateau_requirements(CT, X, C)
    assert failing_rows(counter_constant.expr, CT=[0, 1, 2], C=[2, 3, 3]) == [1]


# ==========================================
# STAMP CONSTANCY
# ==========================================

class TestStampConstancy(unittest.TestCase):
    def test_c_changes_with_stamp(self):
        self.assertEqual(failing_rows(structural.stamp_constancy(STAMP, C), STAMP=[5, 5, 5, 7, 7], C=[1, 1, 1, 3, 3]), [])

    def test_c_changes_inside_segment(self):
        rows = failing_rows(structural.stamp_constancy(STAMP, C), STAMP=[5, 5, 5, 7, 7], C=[1, 2, 1, 3, 3])
        # STAMP stays 5 into the next row while C moves 1 -> 2, then 2 -> 1
        self.assertEqual(rows, [0, 1])

    def test_no_requirements(self):
        self.assertEqual(structural.stamp_constancy_requirements(STAMP, C), ())
        self.assertEqual(structural.counter_constancy_requirements(CT, X), ())


if __name__ == "__main__":
    unittest.main()
