import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import unittest

import pytest

from vanish.vanish_parser import Keyword, ParseError, SList, Symbol, clear_cache, parse


def names(form):
    """Strip positions so forms compare structurally."""
    if isinstance(form, Symbol):
        return form.name
    if isinstance(form, SList):
        return [names(i) for i in form.items]
    return form


class TestReader(unittest.TestCase):
    def setUp(self):
        clear_cache()

    def test_atoms(self):
        forms = parse("12 -3 0x1F foo :boolean if-zero m.X + -")
        self.assertEqual(
            [names(f) for f in forms],
            [12, -3, 31, "foo", Keyword(":boolean"), "if-zero", "m.X", "+", "-"],
        )

    def test_nested_lists(self):
        (form,) = parse("(defconstraint c () (if-zero CT (- X 1)))")
        self.assertEqual(names(form), ["defconstraint", "c", [], ["if-zero", "CT", ["-", "X", 1]]])
        self.assertEqual(form.head(), "defconstraint")

    def test_comments_and_whitespace(self):
        source = """
        ; columns
        (defcolumns A   B) ; trailing
        ;; and a constant
        (defconst N 3)
        """
        forms = parse(source)
        self.assertEqual([names(f) for f in forms], [["defcolumns", "A", "B"], ["defconst", "N", 3]])

    def test_empty_source(self):
        self.assertEqual(parse(""), ())
        self.assertEqual(parse("  ; nothing\n"), ())

    def test_symbol_positions(self):
        (form,) = parse("(eq A B)")
        self.assertEqual(form.items[1].position, 4)

    def test_str_roundtrip(self):
        (form,) = parse("(defcolumns (F :boolean) X)")
        self.assertEqual(str(form), "(defcolumns (F :boolean) X)")

    def test_cached_results_are_shared(self):
        self.assertIs(parse("(a b)"), parse("(a b)"))


@pytest.mark.parametrize("bad", [
    "(a b",
    "a b)",
    "(a (b c)",
    ")",
])
def test_unbalanced_parentheses(bad):
    with pytest.raises(ParseError, match="ERR_SYNTAX"):
        parse(bad)


def test_deep_nesting_is_a_syntax_error():
    source = "(+ 1 " * 5000 + "1" + ")" * 5000
    with pytest.raises(ParseError, match="ERR_SYNTAX: nesting too deep"):
        parse(source)


def test_non_string_rejected():
    with pytest.raises(ParseError):
        parse(None)


def test_number_glued_to_symbol_is_symbol():
    # 12abc is not a number and not a symbol either (symbols never start with a digit)
    with pytest.raises(ParseError):
        parse("12abc")


if __name__ == "__main__":
    unittest.main()
