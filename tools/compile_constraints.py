#!/usr/bin/env python3
"""
Print the canonical JSON of a compiled constraint set and its hash.

Usage:
  compile_constraints.py CONSTRAINTS.lisp [--debug] [--hash-only]
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from vanish.canonical import canonical_json, constraint_set_hash
from vanish.compiler import CompileSettings, compile_source
from vanish.definitions import DefinitionError
from vanish.vanish_parser import ParseError


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compile Vanish constraints to canonical JSON")
    parser.add_argument("constraints", help="Constraint source file")
    parser.add_argument("--debug", action="store_true", help="Keep (debug ...) forms")
    parser.add_argument("--hash-only", action="store_true", help="Only print the constraint set hash")
    args = parser.parse_args(argv)

    source = Path(args.constraints).read_text(encoding="utf-8")
    try:
        cs = compile_source(source, CompileSettings(debug=args.debug))
    except (ParseError, DefinitionError) as e:
        print(str(e), file=sys.stderr)
        return 1

    if not args.hash_only:
        print(canonical_json(cs.to_dict()))
    print(constraint_set_hash(cs))
    return 0


if __name__ == "__main__":
    sys.exit(main())
