import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import unittest

from vanish import boolean, temporal
from vanish.checker import CheckSettings, check, evaluate_rows
from vanish.constraints import ConstraintSet
from vanish.expression import col
from vanish.field import Fr
from vanish.trace import Trace

A, B = col("A"), col("B")


def constraint_set():
    cs = ConstraintSet()
    cs.add_vanishing("a-binary", boolean.is_binary(A))
    cs.add_vanishing("b-constant", temporal.remains_constant(B))
    cs.add_in_range("b-small", B, 10)
    return cs


class TestCheck(unittest.TestCase):
    def setUp(self):
        self.trace = Trace.from_columns({"A": [0, 1, 2, 3, 1], "B": [4, 4, 4, 4, 4]})

    def test_first_failure_only_by_default(self):
        report = check(constraint_set(), self.trace)
        self.assertFalse(report.ok)
        self.assertEqual([(f.constraint, f.row) for f in report.failures], [("a-binary", 2)])
        self.assertEqual(report.checked, ["a-binary", "b-constant", "b-small"])

    def test_continue_on_error(self):
        report = check(constraint_set(), self.trace, CheckSettings(continue_on_error=True))
        self.assertEqual(report.failed_rows("a-binary"), [2, 3])

    def test_failure_value_and_span(self):
        report = check(constraint_set(), self.trace, CheckSettings(trace_span=1))
        (f,) = report.failures
        # 2 * (1 - 2)
        self.assertEqual(f.value, Fr(-2))
        self.assertEqual(f.first_row, 1)
        self.assertEqual(f.span, {"main.A": [1, 2, 3]})
        self.assertIn("a-binary failed at row 2: -2", f.describe())
        self.assertIn("[2]", f.describe())

    def test_undefined_rows_are_skipped(self):
        report = check(constraint_set(), self.trace, CheckSettings(only=["b-constant"]))
        self.assertTrue(report.ok)
        self.assertEqual(report.undefined_rows, {"b-constant": 1})

    def test_only_and_skip(self):
        report = check(constraint_set(), self.trace, CheckSettings(skip=["a-binary"]))
        self.assertTrue(report.ok)
        self.assertEqual(report.checked, ["b-constant", "b-small"])

    def test_in_range(self):
        trace = Trace.from_columns({"A": [0, 1], "B": [9, 10]})
        report = check(constraint_set(), trace, CheckSettings(only=["b-small"]))
        self.assertEqual(report.failed_rows("b-small"), [1])

    def test_requirements_selected_with_owner(self):
        cs = ConstraintSet()
        cs.add_guarded("owner", A, [])
        cs.add_vanishing("owner:pre", B)
        settings = CheckSettings(only=["owner"])
        self.assertTrue(settings.selects("owner:pre"))
        self.assertFalse(settings.selects("other"))


class TestDomains(unittest.TestCase):
    def test_domain_rows_only(self):
        cs = ConstraintSet()
        cs.add_vanishing("first-last", A, domain=[0, -1])
        self.assertTrue(check(cs, Trace.from_columns({"A": [0, 5, 5, 0]})).ok)
        report = check(cs, Trace.from_columns({"A": [0, 5, 5, 1]}))
        self.assertEqual(report.failed_rows("first-last"), [3])

    def test_padding_shifts_rows(self):
        cs = ConstraintSet()
        cs.add_vanishing("first", A, domain=[0])
        trace = Trace.from_columns({"A": [1, 0, 0]})
        self.assertFalse(check(cs, trace).ok)
        # One zero row is prepended to reach four rows
        self.assertTrue(check(cs, trace, CheckSettings(pad=True)).ok)


def test_evaluate_rows():
    trace = Trace.from_columns({"A": [1, 2, 4]})
    assert evaluate_rows(temporal.did_change(A), trace) == [None, 0, 0]
    assert evaluate_rows(boolean.is_zero(A), trace) == [0, 0, 0]


def test_rows_are_independent_of_order():
    trace = Trace.from_columns({"A": [3, 3, 5, 5, 5, 8]})
    expr = temporal.didnt_change(A)
    forward = evaluate_rows(expr, trace)
    from vanish.expression import evaluate
    backward = [evaluate(expr, r, trace.read) for r in reversed(range(len(trace)))]
    assert forward == list(reversed(backward))


def test_trace_output_goes_to_stderr(capsys):
    cs = ConstraintSet()
    cs.add_vanishing("c", A)
    check(cs, Trace.from_columns({"A": [0]}), CheckSettings(trace=True))
    captured = capsys.readouterr()
    assert "[0] main.A = 0" in captured.err
    assert captured.out == ""


if __name__ == "__main__":
    unittest.main()
