import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import json
import unittest

import pytest

from vanish.expression import BOOLEAN, Handle, INTEGER
from vanish.field import Fr
from vanish.trace import BadTraceError, Trace, TraceError


class TestFromJson(unittest.TestCase):
    def test_transparent_keys(self):
        obj = {"Trace": {"alu": {"Assignment": {"X": [1, 2, 3]}}, "main": {"CT": ["0x0", "1", 2]}}}
        t = Trace.from_json(obj)
        self.assertEqual(t.column(Handle("alu", "X")), (Fr(1), Fr(2), Fr(3)))
        self.assertEqual(t.column(Handle("main", "CT")), (Fr(0), Fr(1), Fr(2)))

    def test_column_named_by_last_two_keys(self):
        t = Trace.from_json({"deep": {"nested": {"m": {"A": [7]}}}})
        self.assertIn(Handle("m", "A"), t)

    def test_short_path_warns(self):
        t = Trace.from_json({"A": [1, 2]})
        self.assertEqual(t.handles(), [])
        self.assertEqual(len(t.warnings), 1)

    def test_unknown_columns_warn_when_declared(self):
        declared = {Handle("m", "A"): INTEGER}
        t = Trace.from_json({"m": {"A": [1], "B": [2]}, "other": {"C": [3]}}, declared)
        self.assertEqual(t.handles(), [Handle("m", "A")])
        self.assertTrue(any("column `m.B`" in w for w in t.warnings))
        self.assertTrue(any("module `other`" in w for w in t.warnings))

    def test_boolean_columns_checked(self):
        declared = {Handle("m", "F"): BOOLEAN}
        Trace.from_json({"m": {"F": [0, 1, 1]}}, declared)
        with self.assertRaises(BadTraceError) as cm:
            Trace.from_json({"m": {"F": [0, 2]}}, declared)
        self.assertIn("ERR_NOT_BOOLEAN", str(cm.exception))
        self.assertIn("m.F[1]", str(cm.exception))

    def test_bad_values(self):
        for bad in (1.5, True, None, "xyz", [1]):
            with self.assertRaises(BadTraceError):
                Trace.from_json({"m": {"A": [0, bad]}})


class TestAccess(unittest.TestCase):
    def setUp(self):
        self.t = Trace.from_columns({"A": [1, 2, 3], "B": [4]})

    def test_read_out_of_range_is_none(self):
        self.assertEqual(self.t.read(Handle("main", "A"), 2), 3)
        self.assertIsNone(self.t.read(Handle("main", "A"), 3))
        self.assertIsNone(self.t.read(Handle("main", "A"), -1))
        self.assertIsNone(self.t.read(Handle("main", "Z"), 0))

    def test_length_is_longest_column(self):
        self.assertEqual(len(self.t), 3)
        self.assertEqual(self.t.lengths(), {Handle("main", "A"): 3, Handle("main", "B"): 1})

    def test_missing_column(self):
        with self.assertRaises(TraceError):
            self.t.column(Handle("main", "Z"))

    def test_padding_prepends_zeros(self):
        t = Trace.from_columns({"A": [1, 2, 3, 4, 5]}).padded()
        self.assertEqual([x.value for x in t.column(Handle("main", "A"))], [0, 0, 0, 1, 2, 3, 4, 5])

    def test_padding_power_of_two_is_unchanged(self):
        t = Trace.from_columns({"A": [1, 2, 3, 4]}).padded()
        self.assertEqual(len(t), 4)

    def test_to_dict_sorted(self):
        self.assertEqual(self.t.to_dict(), {"main": {"A": [1, 2, 3], "B": [4]}})


def test_hash_independent_of_literal_spelling():
    a = Trace.from_json({"m": {"A": [255, 1]}})
    b = Trace.from_json({"Trace": {"m": {"A": ["0xff", "1"]}}})
    assert a.trace_hash() == b.trace_hash()
    assert len(a.trace_hash()) == 64


def test_hash_changes_with_values():
    assert Trace.from_columns({"A": [1]}).trace_hash() != Trace.from_columns({"A": [2]}).trace_hash()


def test_from_file(tmp_path):
    p = tmp_path / "trace.json"
    p.write_text(json.dumps({"Trace": {"main": {"A": [1, 2]}}}), encoding="utf-8")
    assert len(Trace.from_file(str(p))) == 2

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(BadTraceError, match="ERR_TRACE_FORMAT"):
        Trace.from_file(str(bad))


if __name__ == "__main__":
    unittest.main()
