"""
vanish_parser.py

PEG grammar and reader for Vanish constraint sources.

Sources are s-expressions:

    ; comments run to the end of the line
    (defcolumns CT (FLAG :boolean) ACC BYTE)
    (defconstraint bytes () (byte-decomposition CT ACC BYTE))

The reader only builds syntax (ints, Symbol, Keyword, SList); resolving
names is the job of definitions.py and compiler.py.
"""

from __future__ import annotations

import hashlib
import os
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Tuple, Union

from arpeggio import EOF, NoMatch, ParserPython, PTNodeVisitor, ZeroOrMore, visit_parse_tree
from arpeggio import RegExMatch as _


class ParseError(Exception):
    pass


# ==========================================
# SYNTAX NODES
# ==========================================

@dataclass(frozen=True)
class Symbol:
    name: str
    position: int = -1

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Keyword:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class SList:
    items: Tuple[Any, ...]
    position: int = -1

    def __str__(self) -> str:
        return "(" + " ".join(str(i) for i in self.items) + ")"

    def __getitem__(self, i):
        return self.items[i]

    def head(self):
        """The leading symbol name, or None."""
        if self.items and isinstance(self.items[0], Symbol):
            return self.items[0].name
        return None


Form = Union[int, Symbol, Keyword, SList]


# ==========================================
# GRAMMAR
# ==========================================

def comment():
    return _(r';[^\n]*')


def integer():
    # Decimal or 0x-hex, optionally negative; must end at a delimiter
    return _(r'-?(0x[0-9a-fA-F]+|[0-9]+)(?![^\s()])')


def keyword():
    return _(r':[A-Za-z][\w\-]*')


def symbol():
    # Anything else up to a delimiter: +, if-zero, module.COLUMN, A_1 ...
    return _(r'[^\s()0-9:;][^\s();]*')


def sexp():
    return "(", ZeroOrMore(form), ")"


def form():
    # integer BEFORE symbol so that -1 is a number and - a symbol
    return [integer, keyword, symbol, sexp]


def program():
    return ZeroOrMore(form), EOF


# ==========================================
# VISITOR
# ==========================================

def _flatten(children):
    """Arpeggio may nest repetition results; keep only syntax nodes."""
    out = []
    for c in children:
        if isinstance(c, (list, tuple)):
            out.extend(_flatten(c))
        elif isinstance(c, str):
            # parentheses and EOF
            continue
        else:
            out.append(c)
    return out


class SexpVisitor(PTNodeVisitor):
    def visit_integer(self, node, children):
        text = node.value
        if "x" in text.lower():
            return int(text, 16)
        return int(text, 10)

    def visit_keyword(self, node, children):
        return Keyword(node.value)

    def visit_symbol(self, node, children):
        return Symbol(node.value, node.position)

    def visit_sexp(self, node, children):
        return SList(tuple(_flatten(children)), node.position)

    def visit_form(self, node, children):
        flat = _flatten(children)
        return flat[0] if flat else None

    def visit_program(self, node, children):
        return tuple(_flatten(children))


# ==========================================
# PERFORMANCE: PROGRAM CACHING
# ==========================================
# Identical sources are read once.

_PROGRAM_CACHE = OrderedDict()
_PROGRAM_CACHE_MAX_SIZE = 256
_PROGRAM_CACHE_LOCK = threading.Lock()
_PARSER_LOCK = threading.Lock()

# Grammar version tracking for cache invalidation
GRAMMAR_VERSION = "1.0.0"

_GLOBAL_PARSER = None
_GRAMMAR_HASH = hashlib.sha256(GRAMMAR_VERSION.encode()).hexdigest()[:8]

_DEBUG_ENABLED = os.getenv("VANISH_DEBUG", "0") == "1"


def _get_or_create_parser():
    """Get global parser instance, creating it if needed."""
    global _GLOBAL_PARSER
    with _PARSER_LOCK:
        if _GLOBAL_PARSER is None:
            _GLOBAL_PARSER = ParserPython(program, comment, debug=False)
    return _GLOBAL_PARSER


def _read(source: str) -> Tuple[Form, ...]:
    parser = _get_or_create_parser()
    # Arpeggio parser state is not thread-safe
    with _PARSER_LOCK:
        try:
            tree = parser.parse(source)
        except NoMatch as e:
            raise ParseError(f"ERR_SYNTAX: {e}")
        except RecursionError:
            raise ParseError("ERR_SYNTAX: nesting too deep")
    try:
        return visit_parse_tree(tree, SexpVisitor(debug=_DEBUG_ENABLED))
    except RecursionError:
        raise ParseError("ERR_SYNTAX: nesting too deep")


def parse(source: str) -> Tuple[Form, ...]:
    """
    Read every top-level form of `source`.

    Results are immutable, so cached programs are shared between callers
    without copying.
    """
    if not isinstance(source, str):
        raise ParseError(f"ERR_SYNTAX: expected source text, got {type(source).__name__}")

    cache_key = f"{_GRAMMAR_HASH}:{source}"
    with _PROGRAM_CACHE_LOCK:
        if cache_key in _PROGRAM_CACHE:
            _PROGRAM_CACHE.move_to_end(cache_key)
            return _PROGRAM_CACHE[cache_key]

    forms = _read(source)

    with _PROGRAM_CACHE_LOCK:
        if cache_key in _PROGRAM_CACHE:
            _PROGRAM_CACHE.move_to_end(cache_key)
            return _PROGRAM_CACHE[cache_key]
        if len(_PROGRAM_CACHE) >= _PROGRAM_CACHE_MAX_SIZE:
            _PROGRAM_CACHE.popitem(last=False)
        _PROGRAM_CACHE[cache_key] = forms
        return forms


def clear_cache() -> None:
    with _PROGRAM_CACHE_LOCK:
        _PROGRAM_CACHE.clear()
