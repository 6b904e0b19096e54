#!/usr/bin/env python3
"""
Vanish Trace Checker

Checks a JSON trace against a constraint source and reports every failing
constraint with a window of the trace around the failing row.

Usage:
  check_trace.py CONSTRAINTS.lisp TRACE.json [--only a,b] [--skip c]
                 [--continue] [--trace-span N] [--pad] [--debug]

Exit code 0 when all constraints hold, 1 otherwise.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from vanish.checker import CheckSettings
from vanish.vanish_runtime import VanishRuntime


def _names(value):
    return [n.strip() for n in value.split(",") if n.strip()] if value else []


def build_parser():
    parser = argparse.ArgumentParser(description="Check a trace against Vanish constraints")
    parser.add_argument("constraints", help="Constraint source file")
    parser.add_argument("trace", help="JSON trace file")
    parser.add_argument("--only", help="Comma-separated constraints to check exclusively")
    parser.add_argument("--skip", help="Comma-separated constraints to ignore")
    parser.add_argument("--continue", dest="continue_on_error", action="store_true",
                        help="Keep checking a constraint after its first failing row")
    parser.add_argument("--trace-span", type=int, default=2, help="Rows of context shown around a failure")
    parser.add_argument("--pad", action="store_true", help="Front-pad columns to the next power of two")
    parser.add_argument("--trace", action="store_true", help="Print every sub-expression evaluation")
    parser.add_argument("--debug", action="store_true", help="Compile debug forms and report to stderr")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = CheckSettings(
        only=_names(args.only) or None,
        skip=_names(args.skip),
        continue_on_error=args.continue_on_error,
        trace_span=args.trace_span,
        trace=args.trace,
        pad=args.pad,
    )
    runtime = VanishRuntime(debug=args.debug, settings=settings)

    source = Path(args.constraints).read_text(encoding="utf-8")
    result = runtime.check(source, args.trace)

    for w in result.warnings:
        print(f"warning: {w['code']}: {w['detail']}", file=sys.stderr)

    if result.domain in ("error", "invalid"):
        for e in result.errors:
            print(f"{e['code']}: {e['detail']}", file=sys.stderr)
        return 1

    for f in result.failures:
        print(f.describe())
        print()

    status = "✓ PASS" if result.ok else "✗ FAIL"
    print(f"{status}: {len(result.checked)} constraints checked, {len(result.failures)} failures")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
