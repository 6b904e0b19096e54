"""
vanish_runtime.py

Vanish Runtime
--------------

The VanishRuntime is the unified entrypoint for checking a constraint
source against a trace.

It connects:
    - vanish_parser     (PEG parser -> s-expressions)
    - compiler          (definitions + generation -> ConstraintSet)
    - trace             (JSON trace files -> Trace)
    - vanish_validator  (columns, emptiness, domains)
    - checker           (row-by-row vanishing)

Parse, definition and trace errors are returned as results in the
"error" domain, never raised from check().
"""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from .canonical import constraint_set_hash
from .checker import CheckSettings, Failure, check
from .compiler import CompileSettings, compile_source
from .constraints import ConstraintSet
from .definitions import DefinitionError
from .trace import Trace, TraceError
from .vanish_parser import ParseError
from .vanish_validator import validate_constraint_set


# -------------------------------------------------------------------------
# Runtime Result Object
# -------------------------------------------------------------------------

@dataclass
class CheckResult:
    """
    Public result returned by VanishRuntime.check(...)

    This object contains:
        - domain: satisfied | violated | invalid | error
        - ok: True only in the satisfied domain
        - failures: Failure records, in constraint then row order
        - errors: validator errors (invalid) or the error string (error)
        - warnings: validator warnings
        - constraint_set_hash / trace_hash: canonical digests of the inputs
        - checked: names of the constraints actually checked
    """
    domain: str
    ok: bool
    failures: List[Failure] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    warnings: List[Dict[str, str]] = field(default_factory=list)
    constraint_set_hash: Optional[str] = None
    trace_hash: Optional[str] = None
    checked: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "ok": self.ok,
            "failures": [f.to_dict() for f in self.failures],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "constraint_set_hash": self.constraint_set_hash,
            "trace_hash": self.trace_hash,
            "checked": list(self.checked),
            "error": self.error,
        }


# -------------------------------------------------------------------------
# Runtime Core
# -------------------------------------------------------------------------

class VanishRuntime:
    """
    The canonical Vanish runtime.

    Responsibilities:
        - compile sources into constraint sets
        - load traces against the declared columns
        - validate before checking
        - check and attach input hashes
        - provide consistent error handling
    """

    def __init__(self, *, debug: bool = False, settings: Optional[CheckSettings] = None):
        self.debug = debug
        self.settings = settings or CheckSettings()
        self.compile_settings = CompileSettings(debug=debug)
        if self.debug:
            sys.stderr.write(f"[VanishRuntime] Initialized (settings={self.settings})\n")

    def compile(self, source: str) -> ConstraintSet:
        return compile_source(source, self.compile_settings)

    def load_trace(self, obj_or_path: Union[str, Dict[str, Any], Trace], cs: Optional[ConstraintSet] = None) -> Trace:
        """A Trace from a decoded JSON document, a file path or an existing Trace."""
        if isinstance(obj_or_path, Trace):
            return obj_or_path
        columns = cs.columns if cs is not None else None
        if isinstance(obj_or_path, str):
            return Trace.from_file(obj_or_path, columns)
        return Trace.from_json(obj_or_path, columns)

    # ------------------------------------------------------------------
    # Main checking entrypoint
    # ------------------------------------------------------------------

    def check(self, source_or_cs: Union[str, ConstraintSet], trace: Union[str, Dict[str, Any], Trace]) -> CheckResult:
        try:
            cs = source_or_cs if isinstance(source_or_cs, ConstraintSet) else self.compile(source_or_cs)
            t = self.load_trace(trace, cs)
        except ParseError as e:
            return self._error(str(e))
        except DefinitionError as e:
            return self._error(str(e))
        except TraceError as e:
            return self._error(str(e))
        except OSError as e:
            return self._error(f"ERR_TRACE_FORMAT: {e}")
        except RecursionError:
            return self._error("ERR_SYNTAX: nesting too deep")

        trace_hash = t.trace_hash()
        settings = self.settings
        if settings.pad and len(t):
            # Domains and rows are resolved against the padded trace
            t = t.padded()
            settings = replace(settings, pad=False)

        cs_hash = constraint_set_hash(cs)
        selected = [c.name for c in cs.constraints if self.settings.selects(c.name)]
        validation = validate_constraint_set(cs, t, selected)
        if not validation["ok"]:
            if self.debug:
                sys.stderr.write(f"[VanishRuntime] validation failed: {validation['errors']}\n")
            return CheckResult(
                domain="invalid",
                ok=False,
                errors=validation["errors"],
                warnings=validation["warnings"],
                constraint_set_hash=cs_hash,
                trace_hash=trace_hash,
            )

        try:
            report = check(cs, t, settings)
        except Exception as e:
            # Evaluation is total; anything here is a runtime bug
            msg = f"ERR_RUNTIME_INTERNAL: {e}"
            if self.debug:
                msg += "\n" + traceback.format_exc()
            return self._error(msg)

        if self.debug:
            for f in report.failures:
                sys.stderr.write(f.describe() + "\n")

        return CheckResult(
            domain="satisfied" if report.ok else "violated",
            ok=report.ok,
            failures=report.failures,
            warnings=validation["warnings"],
            constraint_set_hash=cs_hash,
            trace_hash=trace_hash,
            checked=report.checked,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _error(self, msg: str) -> CheckResult:
        """Return error-domain result."""
        if self.debug:
            sys.stderr.write(f"[VanishRuntime] {msg}\n")
        return CheckResult(domain="error", ok=False, errors=[{"code": msg.split(":", 1)[0], "detail": msg}], error=msg)


def check_source(source: str, trace_obj, settings: Optional[CheckSettings] = None) -> CheckResult:
    """Compile `source` and check it against a trace document in one call."""
    return VanishRuntime(settings=settings).check(source, trace_obj)
