#!/usr/bin/env python3
"""
Structural Constraint Demo

Checks the four structural constraints on small hand-written traces, once
with a satisfying trace and once with a single corrupted cell:

1. counter-constancy   X only changes where CT = 0
2. byte-decomposition  ACC accumulates BYTE big-endian, restarting at CT = 0
3. plateau-constraint  X = 0,0,1 per segment of CT = 0,1,2 with C = 2
4. stamp-constancy     C only changes where STAMP changes

Each satisfying trace must pass and each corrupted one must fail at the
expected row.
"""

import sys
from pathlib import Path

# Ensure vanish is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from vanish import CheckSettings, Trace, VanishRuntime


SOURCE = """
(defcolumns CT X ACC BYTE C STAMP (FLAG :boolean))

(defconstraint counter () (counter-constancy CT X))
(defconstraint bytes () (byte-decomposition CT ACC BYTE))
(definrange BYTE 256)
"""

PLATEAU = """
(defcolumns CT X C)
(defconstraint c-constant () (counter-constancy CT C))
(defconstraint plateau () (plateau-constraint CT X C))
"""

STAMP = """
(defcolumns STAMP C)
(defconstraint stamp () (stamp-constancy STAMP C))
"""


CASES = [
    {
        "name": "COUNTER_OK",
        "source": SOURCE,
        "only": ["counter"],
        "columns": {"CT": [0, 1, 2, 0, 1], "X": [9, 9, 9, 4, 4]},
        "expect": [],
    },
    {
        "name": "COUNTER_CHANGED_MID_SEGMENT",
        "source": SOURCE,
        "only": ["counter"],
        "columns": {"CT": [0, 1, 2, 0, 1], "X": [9, 8, 9, 4, 4]},
        "expect": [1],
    },
    {
        "name": "BYTES_OK",
        "source": SOURCE,
        "only": ["bytes", "BYTE<256"],
        "columns": {"CT": [0, 1, 0, 1], "ACC": [0x12, 0x1234, 0xAB, 0xABCD], "BYTE": [0x12, 0x34, 0xAB, 0xCD]},
        "expect": [],
    },
    {
        "name": "BYTES_WRONG_ACCUMULATOR",
        "source": SOURCE,
        "only": ["bytes"],
        "columns": {"CT": [0, 1, 0, 1], "ACC": [0x12, 0x3412, 0xAB, 0xABCD], "BYTE": [0x12, 0x34, 0xAB, 0xCD]},
        "expect": [1],
    },
    {
        "name": "PLATEAU_OK",
        "source": PLATEAU,
        "only": None,
        "columns": {"CT": [0, 1, 2] * 3, "X": [0, 0, 1] * 3, "C": [2] * 9},
        "expect": [],
    },
    {
        "name": "PLATEAU_EARLY_STEP",
        "source": PLATEAU,
        "only": None,
        "columns": {"CT": [0, 1, 2] * 3, "X": [0, 0, 1, 0, 1, 1, 0, 0, 1], "C": [2] * 9},
        "expect": [4],
    },
    {
        "name": "STAMP_OK",
        "source": STAMP,
        "only": None,
        "columns": {"STAMP": [5, 5, 5, 7, 7], "C": [1, 1, 1, 3, 3]},
        "expect": [],
    },
    {
        "name": "STAMP_C_CHANGED_INSIDE_SEGMENT",
        "source": STAMP,
        "only": None,
        "columns": {"STAMP": [5, 5, 5, 7, 7], "C": [1, 2, 1, 3, 3]},
        "expect": [0],
    },
]


def run_case(case) -> bool:
    runtime = VanishRuntime(settings=CheckSettings(only=case["only"], trace_span=1))
    cs = runtime.compile(case["source"])
    trace = Trace.from_columns(case["columns"])
    result = runtime.check(cs, trace)

    rows = sorted({f.row for f in result.failures})
    print(f"\n[{case['name']}] domain={result.domain} failing rows={rows}")
    for f in result.failures:
        print(f.describe())
    return rows == case["expect"]


def main():
    print("=" * 70)
    print("VANISH STRUCTURAL CONSTRAINT DEMO")
    print("=" * 70)

    failed = 0
    for case in CASES:
        if not run_case(case):
            print(f"❌ {case['name']}: expected failing rows {case['expect']}")
            failed += 1

    print(f"\n{'='*70}")
    print(f"RESULTS: {len(CASES) - failed} passed, {failed} failed")
    print(f"{'='*70}\n")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
