"""
Vanish - derived constraint expressions over execution traces.

Public API:
- VanishRuntime / check_source: compile a source and check it against a trace
- compile_source: Lisp front end -> ConstraintSet
- Trace: column data loaded from JSON or built directly
- check / CheckSettings: row-by-row checker
- boolean, temporal, structural: the combinator layers
"""

from . import boolean, structural, temporal
from .checker import CheckReport, CheckSettings, Failure, check, evaluate_rows
from .compiler import CompileError, CompileSettings, compile_source
from .constraints import ConstraintSet, InRange, Requirement, Vanishes
from .definitions import DefinitionError
from .expression import Builtin, EvaluationError, Handle, call, col, evaluate
from .field import Fr
from .trace import BadTraceError, Trace, TraceError
from .vanish_parser import ParseError
from .vanish_runtime import CheckResult, VanishRuntime, check_source
from .vanish_validator import validate_constraint_set

# Derive version from package metadata
try:
    from importlib.metadata import version
    __version__ = version("vanish")
except Exception:
    __version__ = "1.0.0"

__all__ = [
    "VanishRuntime",
    "CheckResult",
    "check_source",
    "compile_source",
    "CompileSettings",
    "CompileError",
    "DefinitionError",
    "ParseError",
    "EvaluationError",
    "Trace",
    "TraceError",
    "BadTraceError",
    "check",
    "evaluate_rows",
    "CheckSettings",
    "CheckReport",
    "Failure",
    "ConstraintSet",
    "Vanishes",
    "InRange",
    "Requirement",
    "validate_constraint_set",
    "Fr",
    "Handle",
    "Builtin",
    "call",
    "col",
    "evaluate",
    "boolean",
    "temporal",
    "structural",
]
