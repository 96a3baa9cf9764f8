"""Wire constants: reserved tag keys, reserved collections, numeric ranges.

The tag keys are a bit-exact contract with the database: a change here is a
protocol change, not a refactor.
"""

from __future__ import annotations

__wire_version__ = "2.7"

# ── Reserved tag keys ────────────────────────────────────────
# A JSON object carrying exactly one of these keys is a tagged form.
# User maps are always nested under KEY_OBJECT, so a user key spelled
# "@ref" can never be read back as a reference.
KEY_BYTES: str = "@bytes"
KEY_DATE: str = "@date"
KEY_TS: str = "@ts"
KEY_REF: str = "@ref"
KEY_SET: str = "@set"
KEY_OBJECT: str = "object"

# Fields of the @set payload.
KEY_MATCH: str = "match"
KEY_TERMS: str = "terms"

RESERVED_KEYS = frozenset(
    (KEY_BYTES, KEY_DATE, KEY_TS, KEY_REF, KEY_SET, KEY_OBJECT)
)

# ── Reserved collections ─────────────────────────────────────
# First path segment of the two-level refs built by Ref.class_(),
# Ref.index() and friends.
COLL_CLASSES: str = "classes"
COLL_INDEXES: str = "indexes"
COLL_DATABASES: str = "databases"
COLL_FUNCTIONS: str = "functions"
COLL_KEYS: str = "keys"

REF_SEPARATOR: str = "/"

# ── Integer ranges ───────────────────────────────────────────
# Python ints are arbitrary-precision; the wire only carries 64-bit values.
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1
UINT64_MAX: int = 2**64 - 1
