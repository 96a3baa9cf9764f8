"""faunaexpr: value expressions and their extended-JSON wire encoding.

Build documents and query values from native Python data, then encode them
into the database's wire format.

Quick start:
    >>> from faunaexpr import Object, Ref, Set, dumps
    >>> dumps(Ref("foo", Ref.class_("test")))
    '{"@ref":"classes/test/foo"}'
    >>> dumps(Object().insert("foo", "bar").insert("lol", False))
    '{"object":{"foo":"bar","lol":false}}'
    >>> dumps(Set.matching(Ref.index("cats_age"), 8))
    '{"@set":{"match":{"@ref":"indexes/cats_age"},"terms":8}}'

User maps are always wrapped under "object", so a user key that happens to
be spelled like a tag stays a plain key:
    >>> dumps({"@ref": "not a ref"})
    '{"object":{"@ref":"not a ref"}}'
"""

from __future__ import annotations

from ._constants import (
    INT64_MAX,
    INT64_MIN,
    KEY_BYTES,
    KEY_DATE,
    KEY_OBJECT,
    KEY_REF,
    KEY_SET,
    KEY_TS,
    RESERVED_KEYS,
    UINT64_MAX,
)
from ._encoder import dump, dumps, dumps_bytes, to_wire
from ._errors import (
    ERR_JSON,
    ERR_JSON_SHAPE,
    ERR_RANGE,
    ERR_TYPE,
    ERR_UTF8,
    ExprError,
)
from ._expr import (
    NULL,
    VARIANTS,
    Array,
    Boolean,
    Bytes,
    Date,
    Double,
    Expr,
    Float,
    Int,
    Null,
    Object,
    Ref,
    Set,
    String,
    Timestamp,
    UInt,
    expr,
)
from ._json_adapter import json_to_expr, loads_expr, parse_json

__version__ = "0.3.0"

__all__ = [
    # Value model
    "Expr",
    "VARIANTS",
    "String",
    "Double",
    "Float",
    "Int",
    "UInt",
    "Boolean",
    "Null",
    "NULL",
    "Bytes",
    "Date",
    "Timestamp",
    "Ref",
    "Object",
    "Array",
    "Set",
    "expr",
    # Encoder
    "to_wire",
    "dumps",
    "dumps_bytes",
    "dump",
    # JSON adapter
    "parse_json",
    "json_to_expr",
    "loads_expr",
    # Exception
    "ExprError",
    # Error codes
    "ERR_JSON_SHAPE",
    "ERR_TYPE",
    "ERR_RANGE",
    "ERR_JSON",
    "ERR_UTF8",
    # Wire constants
    "KEY_BYTES",
    "KEY_DATE",
    "KEY_TS",
    "KEY_REF",
    "KEY_SET",
    "KEY_OBJECT",
    "RESERVED_KEYS",
    "INT64_MIN",
    "INT64_MAX",
    "UINT64_MAX",
]
