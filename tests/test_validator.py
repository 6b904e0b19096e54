import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import unittest

from vanish.constraints import ConstraintSet
from vanish.expression import Handle, col
from vanish.trace import Trace
from vanish.vanish_validator import validate_constraint_set


def codes(entries):
    return [e["code"] for e in entries]


class TestValidator(unittest.TestCase):
    def setUp(self):
        self.cs = ConstraintSet()
        for name in ("A", "B", "UNUSED"):
            self.cs.add_column(Handle("main", name))
        self.cs.add_vanishing("ab", col("A"))
        self.cs.add_vanishing("b-first", col("B"), domain=[0])

    def test_ok(self):
        result = validate_constraint_set(self.cs, Trace.from_columns({"A": [0, 0], "B": [0, 1]}))
        self.assertTrue(result["ok"])
        self.assertEqual(result["errors"], [])
        self.assertEqual(codes(result["warnings"]), ["WARN_UNUSED_COLUMN"])

    def test_missing_column(self):
        result = validate_constraint_set(self.cs, Trace.from_columns({"A": [0]}))
        self.assertFalse(result["ok"])
        self.assertEqual(codes(result["errors"]), ["ERR_COLUMN_MISSING"])
        self.assertIn("main.B", result["errors"][0]["detail"])

    def test_empty_trace_reported_first(self):
        result = validate_constraint_set(self.cs, Trace.from_columns({}))
        self.assertEqual(codes(result["errors"]), ["ERR_EMPTY_TRACE", "ERR_COLUMN_MISSING", "ERR_COLUMN_MISSING"])

    def test_domain_out_of_range(self):
        cs = ConstraintSet()
        cs.add_vanishing("late", col("A"), domain=[5, -3])
        result = validate_constraint_set(cs, Trace.from_columns({"A": [0, 0]}))
        self.assertEqual(codes(result["errors"]), ["ERR_DOMAIN_OUT_OF_RANGE", "ERR_DOMAIN_OUT_OF_RANGE"])

    def test_length_mismatch_warns(self):
        result = validate_constraint_set(self.cs, Trace.from_columns({"A": [0, 0, 0], "B": [0]}))
        self.assertTrue(result["ok"])
        self.assertIn("WARN_LENGTH_MISMATCH", codes(result["warnings"]))

    def test_selection_limits_inspection(self):
        result = validate_constraint_set(self.cs, Trace.from_columns({"A": [0]}), names=["ab"])
        self.assertTrue(result["ok"])
        self.assertEqual(result["warnings"], [])

    def test_trace_warnings_forwarded(self):
        trace = Trace.from_json({"main": {"A": [0], "B": [0]}, "X": [1]})
        result = validate_constraint_set(self.cs, trace)
        self.assertIn("WARN_TRACE", codes(result["warnings"]))


if __name__ == "__main__":
    unittest.main()
