"""
definitions.py

Symbol tables and the declaration pass of the Vanish front end.

Scopes:
    root        the main module; every other scope falls back to it
    module      one per `(module NAME)`; open, sees the root
    call scope  created for each user function call; a pure function's
                scope is *closed*: from inside it, only constants can be
                seen outside its arguments

The declaration pass registers columns, constants, aliases, functions and
constraint names so that the generation pass (compiler.py) can resolve
forward references.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple, Union

from .constraints import ConstraintSet
from .expression import BOOLEAN, Column, Const, Expression, Handle, INTEGER, MAIN_MODULE
from .field import MODULUS
from .operator_lexicon import (
    BUILTIN_OPS,
    COLUMN_TYPES,
    DEFINITION_FORMS,
    RESERVED,
    SPECIAL_FORMS,
    STDLIB_OPS,
)
from .vanish_parser import Keyword, SList, Symbol


class DefinitionError(Exception):
    """Raised on any ill-formed declaration or unresolvable name."""


@dataclass(frozen=True)
class Function:
    name: str
    args: Tuple[str, ...]
    body: object
    pure: bool


@dataclass(frozen=True)
class _Alias:
    target: str


class SymbolTable:
    def __init__(self, name: str, parent: Optional["SymbolTable"] = None, closed: bool = False, module: bool = True):
        self.name = name
        self.parent = parent
        self.closed = closed
        self.is_module = module
        self.children: Dict[str, SymbolTable] = {}
        self.constraints: Set[str] = set()
        self.funcs: Dict[str, Union[Function, _Alias]] = {}
        self.symbols: Dict[str, Union[Expression, _Alias]] = {}

    @classmethod
    def new_root(cls) -> "SymbolTable":
        return cls(MAIN_MODULE, None, closed=True)

    def root(self) -> "SymbolTable":
        t = self
        while t.parent is not None:
            t = t.parent
        return t

    def module(self) -> str:
        """Name of the nearest enclosing module."""
        t = self
        while not t.is_module:
            t = t.parent
        return t.name

    def derived(self, name: str) -> "SymbolTable":
        """The module `name` below this table, created on first use."""
        if name == self.name:
            return self
        if name not in self.children:
            self.children[name] = SymbolTable(name, self, closed=False)
        return self.children[name]

    def call_scope(self, name: str, closed: bool) -> "SymbolTable":
        """A fresh, unregistered scope for one function call or `let`."""
        return SymbolTable(name, self, closed=closed, module=False)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def _check_free(self, name: str):
        if name in self.symbols:
            raise DefinitionError(f"ERR_ALREADY_DEFINED: `{name}` already exists in module `{self.name}`")

    def insert_symbol(self, name: str, e: Expression) -> None:
        self._check_free(name)
        self.symbols[name] = e

    def insert_column(self, name: str, t: str = INTEGER) -> Column:
        c = Column(Handle(self.module(), name), t)
        self.insert_symbol(name, c)
        return c

    def insert_constant(self, name: str, value: int) -> None:
        if abs(value) >= MODULUS:
            raise DefinitionError(f"ERR_INVALID_NUMBER: {value} is not an Fr element")
        self.insert_symbol(name, Const(value))

    def insert_alias(self, name: str, target: str) -> None:
        self._check_free(name)
        self.symbols[name] = _Alias(target)

    def insert_function(self, name: str, f: Union[Function, _Alias]) -> None:
        if name in self.funcs or name in RESERVED or name in STDLIB_OPS:
            raise DefinitionError(f"ERR_ALREADY_DEFINED: function `{name}` already defined")
        self.funcs[name] = f

    def insert_constraint(self, name: str) -> None:
        if name in self.constraints:
            raise DefinitionError(f"ERR_ALREADY_DEFINED: constraint `{name}` already defined")
        self.constraints.add(name)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_symbol(self, name: str) -> Expression:
        if "." in name:
            module, rest = name.split(".", 1)
            root = self.root()
            table = root if module == root.name else root.children.get(module)
            if table is None:
                raise DefinitionError(f"ERR_UNKNOWN_SYMBOL: module `{module}` not found")
            return table._resolve_symbol(rest, set(), absolute=True, pure=False)
        return self._resolve_symbol(name, set(), absolute=False, pure=False)

    def _resolve_symbol(self, name: str, seen: Set[str], absolute: bool, pure: bool) -> Expression:
        if name in seen:
            raise DefinitionError(f"ERR_CIRCULAR_DEFINITION: circular definitions found for `{name}`")
        seen.add(name)

        entry = self.symbols.get(name)
        if isinstance(entry, _Alias):
            return self._resolve_symbol(entry.target, seen, absolute, pure)
        if entry is not None:
            if pure and not isinstance(entry, Const):
                raise DefinitionError(f"ERR_IMPURE_REFERENCE: symbol `{name}` can not be used in a pure context")
            return entry
        if absolute or self.parent is None:
            raise DefinitionError(f"ERR_UNKNOWN_SYMBOL: symbol `{name}` unknown in module `{self.name}`")
        return self.parent._resolve_symbol(name, set(), False, self.closed or pure)

    def resolve_function(self, name: str) -> Union[str, Function]:
        """A builtin/stdlib name, or a user Function."""
        return self._resolve_function(name, set())

    def _resolve_function(self, name: str, seen: Set[str]) -> Union[str, Function]:
        if name in seen:
            raise DefinitionError(f"ERR_CIRCULAR_DEFINITION: circular definitions found for `{name}`")
        seen.add(name)

        if name in BUILTIN_OPS or name in SPECIAL_FORMS or name in STDLIB_OPS:
            return name
        f = self.funcs.get(name)
        if isinstance(f, _Alias):
            return self._resolve_function(f.target, seen)
        if f is not None:
            return f
        if self.parent is None:
            raise DefinitionError(f"ERR_UNKNOWN_FUNCTION: function `{name}` unknown")
        return self.parent._resolve_function(name, seen)


# ==========================================
# DECLARATION PASS
# ==========================================

def _symbol_name(x, what: str) -> str:
    if not isinstance(x, Symbol):
        raise DefinitionError(f"ERR_EXPECTED_SYMBOL: expected {what}, found `{x}`")
    return x.name


def _pairs(items, what: str):
    if len(items) % 2:
        raise DefinitionError(f"ERR_ARITY: {what} expects name/value pairs")
    return [(items[i], items[i + 1]) for i in range(0, len(items), 2)]


def _signature(form) -> Tuple[str, Tuple[str, ...]]:
    if not isinstance(form, SList) or not form.items:
        raise DefinitionError(f"ERR_EXPECTED_SIGNATURE: expected (name args...), found `{form}`")
    names = [_symbol_name(x, "a function signature") for x in form.items]
    return names[0], tuple(names[1:])


def _declare_columns(items, ctx: SymbolTable, cs: ConstraintSet):
    for item in items:
        if isinstance(item, Symbol):
            name, t = item.name, INTEGER
        elif isinstance(item, SList) and len(item.items) == 2 and isinstance(item.items[1], Keyword):
            name = _symbol_name(item.items[0], "a column name")
            kw = item.items[1].name
            if kw not in COLUMN_TYPES:
                raise DefinitionError(f"ERR_UNKNOWN_TYPE: unknown column type `{kw}` for `{name}`")
            t = BOOLEAN if kw == ":boolean" else INTEGER
        else:
            raise DefinitionError(f"ERR_EXPECTED_SYMBOL: expected a column declaration, found `{item}`")
        c = ctx.insert_column(name, t)
        cs.add_column(c.handle, t)


def declare(forms, root: SymbolTable, cs: ConstraintSet) -> None:
    """First pass: register every name declared in `forms`."""
    ctx = root
    for form in forms:
        if not isinstance(form, SList) or form.head() not in DEFINITION_FORMS:
            raise DefinitionError(f"ERR_UNEXPECTED_FORM: expected a definition at top level, found `{form}`")
        head, args = form.head(), form.items[1:]

        if head == "module":
            if len(args) != 1:
                raise DefinitionError("ERR_ARITY: module expects exactly one name")
            ctx = root.derived(_symbol_name(args[0], "a module name"))
        elif head == "defcolumns":
            _declare_columns(args, ctx, cs)
        elif head == "defconst":
            for name, value in _pairs(args, "defconst"):
                if not isinstance(value, int):
                    raise DefinitionError(f"ERR_NOT_CONSTANT: `{value}` is not an integer literal")
                name = _symbol_name(name, "a constant name")
                ctx.insert_constant(name, value)
                key = name if ctx.name == MAIN_MODULE else f"{ctx.name}.{name}"
                cs.constants[key] = value
        elif head == "defalias":
            for name, target in _pairs(args, "defalias"):
                ctx.insert_alias(_symbol_name(name, "an alias"), _symbol_name(target, "an alias target"))
        elif head == "defunalias":
            for name, target in _pairs(args, "defunalias"):
                ctx.insert_function(_symbol_name(name, "an alias"), _Alias(_symbol_name(target, "a function")))
        elif head in ("defpurefun", "defun"):
            if len(args) != 2:
                raise DefinitionError(f"ERR_ARITY: {head} expects a signature and a body")
            name, params = _signature(args[0])
            if len(set(params)) != len(params):
                raise DefinitionError(f"ERR_ALREADY_DEFINED: duplicate argument in `{name}`")
            ctx.insert_function(name, Function(name, params, args[1], pure=(head == "defpurefun")))
        elif head == "defconstraint":
            if len(args) != 3:
                raise DefinitionError("ERR_ARITY: defconstraint expects a name, options and a body")
            ctx.insert_constraint(_symbol_name(args[0], "a constraint name"))
        # definrange is only handled by the generation pass
