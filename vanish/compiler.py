"""
compiler.py

Turns parsed Vanish forms into a ConstraintSet.

Pass 1 (definitions.declare) registers every name so that constraints may
refer to columns, constants and functions declared later in the source.
Pass 2 (here) reduces each `defconstraint` / `definrange` body to an
Expression:

    integer            Const
    symbol             column, constant or let-binding
    (builtin args...)  Funcall, after arity and compile-time checks
    (stdlib args...)   the matching combinator of the three layers
    (user-fn args...)  body reduced in a child scope binding the
                       already-reduced arguments
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import stdlib
from .constraints import ConstraintError, ConstraintSet
from .definitions import DefinitionError, Function, SymbolTable, declare
from .expression import (
    Builtin,
    Const,
    EvaluationError,
    ExprList,
    Expression,
    Funcall,
    MAIN_MODULE,
    pure_eval,
)
from .operator_lexicon import BUILTIN_OPS, CONSTRAINT_OPTIONS, DEFINITION_FORMS
from .vanish_parser import Keyword, SList, Symbol, parse

_DEBUG_ENABLED = os.getenv("VANISH_DEBUG", "0") == "1"

# User functions may call each other, but not forever
MAX_CALL_DEPTH = 128


def _debug_print(*args, **kwargs):
    """Print only if debug is enabled."""
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


class CompileError(DefinitionError):
    """Raised when a well-declared program still cannot be reduced."""


@dataclass
class CompileSettings:
    """
    debug: keep `(debug ...)` forms as additional constraints instead of
           dropping them
    """
    debug: bool = False


# ==========================================
# REDUCTION
# ==========================================

def _arity_error(name: str, expected: str, got: int) -> CompileError:
    return CompileError(f"ERR_ARITY: `{name}` expected {expected}, but received {got}")


def _check_builtin_arity(b: Builtin, args: Sequence[Expression]):
    lo, hi = b.arity
    n = len(args)
    if hi is None and n < lo:
        raise _arity_error(b.value, f"at least {lo} argument{'s' if lo > 1 else ''}", n)
    if hi is not None and not lo <= n <= hi:
        expected = f"{lo}" if lo == hi else f"{lo} to {hi}"
        raise _arity_error(b.value, f"{expected} argument{'s' if hi > 1 else ''}", n)


def _constant(e: Expression, what: str) -> int:
    try:
        return pure_eval(e)
    except EvaluationError as err:
        raise CompileError(f"ERR_NOT_CONSTANT: {what}: {err}")


def _apply_builtin(b: Builtin, args: List[Expression]) -> Expression:
    _check_builtin_arity(b, args)

    if b is Builtin.SHIFT:
        return Funcall(b, (args[0], Const(_constant(args[1], "shift offset"))))
    if b is Builtin.EXP:
        exponent = _constant(args[1], "exponent")
        if exponent < 0:
            raise CompileError(f"ERR_NOT_CONSTANT: exponent must be non-negative, got {exponent}")
        return Funcall(b, (args[0], Const(exponent)))
    if b is Builtin.BEGIN:
        # (begin (begin a b) c) is the same list as (begin a b c)
        items = []
        for a in args:
            items.extend(a.items if isinstance(a, ExprList) else (a,))
        return ExprList(tuple(items))
    return Funcall(b, tuple(args))


class _Reducer:
    def __init__(self, settings: CompileSettings):
        self.settings = settings
        self.depth = 0

    def reduce(self, form, ctx: SymbolTable) -> Optional[Expression]:
        """Expression for `form`, or None when it compiles to nothing (dropped debug)."""
        if isinstance(form, int):
            return Const(form)
        if isinstance(form, Symbol):
            return ctx.resolve_symbol(form.name)
        if isinstance(form, Keyword):
            raise CompileError(f"ERR_UNEXPECTED_KEYWORD: `{form}` is not an expression")
        if not form.items:
            raise CompileError("ERR_EMPTY_LIST: `()` is not an expression")

        head = form.head()
        if head is None:
            raise CompileError(f"ERR_NOT_CALLABLE: `{form.items[0]}` is not a function")
        if head in DEFINITION_FORMS:
            raise CompileError(f"ERR_UNEXPECTED_FORM: `{head}` is only allowed at top level")

        if head == "let":
            return self._let(form, ctx)
        if head == "debug":
            return self._debug(form, ctx)

        f = ctx.resolve_function(head)
        if isinstance(f, Function):
            return self._call_user(f, form.items[1:], ctx)

        args = self._reduce_args(form.items[1:], ctx)
        if f in BUILTIN_OPS:
            return _apply_builtin(Builtin(f), args)
        try:
            return stdlib.apply(f, args)
        except TypeError as e:
            raise CompileError(str(e))

    def _reduce_args(self, forms, ctx) -> List[Expression]:
        out = []
        for a in forms:
            e = self.reduce(a, ctx)
            if e is not None:
                out.append(e)
        return out

    def _call_user(self, f: Function, arg_forms, ctx: SymbolTable) -> Optional[Expression]:
        if len(arg_forms) != len(f.args):
            raise _arity_error(f.name, f"{len(f.args)} argument{'s' if len(f.args) != 1 else ''}", len(arg_forms))
        args = self._reduce_args(arg_forms, ctx)
        if len(args) != len(f.args):
            raise CompileError(f"ERR_ARITY: an argument of `{f.name}` compiled to nothing")

        if self.depth >= MAX_CALL_DEPTH:
            raise CompileError(f"ERR_RECURSION_LIMIT: `{f.name}` nested deeper than {MAX_CALL_DEPTH} calls")
        scope = ctx.call_scope(f.name, closed=f.pure)
        for name, value in zip(f.args, args):
            scope.insert_symbol(name, value)

        self.depth += 1
        try:
            return self.reduce(f.body, scope)
        finally:
            self.depth -= 1

    def _let(self, form: SList, ctx: SymbolTable) -> Optional[Expression]:
        # (let ((a e1) (b e2)) body); bindings see the earlier ones
        if len(form.items) != 3 or not isinstance(form.items[1], SList):
            raise CompileError(f"ERR_ARITY: let expects a binding list and a body, found `{form}`")
        scope = ctx.call_scope("let", closed=False)
        for binding in form.items[1].items:
            if not (isinstance(binding, SList) and len(binding.items) == 2 and isinstance(binding.items[0], Symbol)):
                raise CompileError(f"ERR_EXPECTED_BINDING: expected (name expr), found `{binding}`")
            value = self.reduce(binding.items[1], scope)
            if value is None:
                raise CompileError(f"ERR_EXPECTED_BINDING: `{binding.items[0]}` is bound to nothing")
            scope.insert_symbol(binding.items[0].name, value)
        return self.reduce(form.items[2], scope)

    def _debug(self, form: SList, ctx: SymbolTable) -> Optional[Expression]:
        if not self.settings.debug:
            return None
        args = self._reduce_args(form.items[1:], ctx)
        if not args:
            return None
        if len(args) == 1:
            return args[0]
        return _apply_builtin(Builtin.BEGIN, args)


# ==========================================
# GENERATION PASS
# ==========================================

def _domain(options) -> Optional[Tuple[int, ...]]:
    if not isinstance(options, SList):
        raise CompileError(f"ERR_EXPECTED_OPTIONS: expected an option list, found `{options}`")
    items = options.items
    domain = None
    i = 0
    while i < len(items):
        kw = items[i]
        if not isinstance(kw, Keyword) or kw.name not in CONSTRAINT_OPTIONS:
            raise CompileError(f"ERR_UNKNOWN_OPTION: `{kw}` is not a constraint option")
        if i + 1 >= len(items):
            raise CompileError(f"ERR_ARITY: option `{kw}` expects a value")
        value = items[i + 1]
        if isinstance(value, int):
            domain = (value,)
        elif isinstance(value, SList) and value.items and all(isinstance(x, int) for x in value.items):
            domain = tuple(value.items)
        else:
            raise CompileError(f"ERR_NOT_CONSTANT: domain must list row indices, found `{value}`")
        i += 2
    return domain


def _qualified(module: str, name: str) -> str:
    return name if module == MAIN_MODULE else f"{module}.{name}"


def _generate(forms, root: SymbolTable, cs: ConstraintSet, reducer: _Reducer) -> None:
    ctx = root
    for form in forms:
        head, args = form.head(), form.items[1:]

        if head == "module":
            ctx = root.derived(args[0].name)
        elif head == "defconstraint":
            name = _qualified(ctx.name, args[0].name)
            domain = _domain(args[1])
            expr = reducer.reduce(args[2], ctx)
            if expr is None:
                _debug_print(f"[compile] constraint `{name}` is empty, skipped")
                continue
            cs.add_vanishing(name, expr, domain)
            _debug_print(f"[compile] {name}: {expr}")
        elif head == "definrange":
            if len(args) != 2:
                raise CompileError("ERR_ARITY: definrange expects an expression and a bound")
            if not isinstance(args[1], int):
                raise CompileError(f"ERR_NOT_CONSTANT: range bound must be an integer, found `{args[1]}`")
            expr = reducer.reduce(args[0], ctx)
            if expr is None:
                continue
            cs.add_in_range(_qualified(ctx.name, f"{args[0]}<{args[1]}"), expr, args[1])


def compile_forms(forms, settings: Optional[CompileSettings] = None) -> ConstraintSet:
    settings = settings or CompileSettings()
    root = SymbolTable.new_root()
    cs = ConstraintSet()
    try:
        declare(forms, root, cs)
        _generate(forms, root, cs, _Reducer(settings))
    except ConstraintError as e:
        raise CompileError(str(e))
    return cs


def compile_source(source: str, settings: Optional[CompileSettings] = None) -> ConstraintSet:
    """
    Parse and compile a Vanish source.

    Raises ParseError on syntax errors and DefinitionError (or its subclass
    CompileError) on anything the two passes reject.
    """
    return compile_forms(parse(source), settings)
