import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "tools")))

import json
from pathlib import Path

import check_trace
import compile_constraints

EXAMPLES = Path(__file__).parent.parent / "examples"
LISP = str(EXAMPLES / "bytes.lisp")
TRACE = str(EXAMPLES / "bytes_trace.json")


def test_check_trace_passes(capsys):
    assert check_trace.main([LISP, TRACE]) == 0
    assert "PASS" in capsys.readouterr().out


def test_check_trace_reports_failures(tmp_path, capsys):
    doc = json.loads(Path(TRACE).read_text(encoding="utf-8"))
    doc["Trace"]["bytes"]["ACC"][1] = 13330
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps(doc), encoding="utf-8")

    assert check_trace.main([LISP, str(bad), "--only", "bytes.accumulate", "--trace-span", "1"]) == 1
    out = capsys.readouterr().out
    assert "bytes.accumulate failed at row 1" in out
    assert "FAIL" in out


def test_check_trace_invalid_source(tmp_path, capsys):
    src = tmp_path / "bad.lisp"
    src.write_text("(defconstraint c () NOPE)", encoding="utf-8")
    assert check_trace.main([str(src), TRACE]) == 1
    assert "ERR_UNKNOWN_SYMBOL" in capsys.readouterr().err


def test_compile_constraints_prints_json_and_hash(capsys):
    assert compile_constraints.main([LISP]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    compiled = json.loads(lines[0])
    assert "bytes.STAMP" in compiled["columns"]
    assert compiled["constants"] == {"bytes.WORD_SIZE": 2}
    assert len(lines[1]) == 64
