"""
Vanish Operator Lexicon (Single Source of Truth)

This module defines every name the front end understands.
The parser, the compiler and the stdlib registry MUST import from this
module so that a name is never known to one layer and unknown to another.
"""

# Primitive builtins evaluated directly by the per-row evaluator
BUILTIN_OPS = {
    "+", "-", "*", "^",             # Arithmetic
    "neg", "inv", "not",            # Monadic
    "shift",                        # Row offset
    "if-zero", "if-not-zero",       # Conditional selection
    "begin",                        # Constraint lists
}

# Forms that do not evaluate all of their arguments
SPECIAL_FORMS = {"let", "debug"}

# Top-level declarations
DEFINITION_FORMS = {
    "module",
    "defcolumns", "defconst", "defalias", "defunalias",
    "defpurefun", "defun",
    "defconstraint", "definrange",
}

# Boolean Algebra Layer
BOOLEAN_OPS = {
    "is-zero", "is-not-zero",
    "eq", "neq",
    "and", "or", "xor",
    "is-binary",
    "if-eq", "if-eq-else", "if-not-eq",
    "vanishes",
}

# Temporal Relation Layer
TEMPORAL_OPS = {
    "next", "prev",
    "will-eq", "was-eq",
    "inc", "dec",
    "didnt-change", "did-change",
    "remains-constant",
}

# Structural Constraint Layer
STRUCTURAL_OPS = {
    "counter-constancy",
    "byte-decomposition",
    "plateau-constraint",
    "stamp-constancy",
}

# Derived sets
STDLIB_OPS = BOOLEAN_OPS | TEMPORAL_OPS | STRUCTURAL_OPS

RESERVED = BUILTIN_OPS | SPECIAL_FORMS | DEFINITION_FORMS

# Column types accepted by defcolumns
COLUMN_TYPES = {":integer", ":boolean"}

# Keywords accepted in a defconstraint option list
CONSTRAINT_OPTIONS = {":domain"}
