"""Wire encoder: Expr → extended-JSON document.

Per-variant output (keys are fixed literals):

    String, Int, UInt, Boolean  → JSON scalar
    Double, Float               → JSON number (NaN/±inf → null)
    Null                        → null
    Bytes                       → {"@bytes": "<padded standard base64>"}
    Date                        → {"@date": "YYYY-MM-DD"}
    Timestamp                   → {"@ts": "<RFC3339, +00:00 offset>"}
    Ref                         → {"@ref": "classes/test/foo"}
    Array                       → [ ...elements... ]
    Object                      → {"object": { ...user keys in order... }}
    Set                         → {"@set": {"match": <ref>, "terms": <expr>}}

Every Object is wrapped, even an empty one and even one whose only key
looks like a tag.  That wrapper is the whole escaping scheme: never skip it
for maps that look safe.

The encoder is pure: no I/O except in dump(), which writes the finished
text to the caller's sink in one call and lets any sink exception through
unchanged.
"""

from __future__ import annotations

import base64
import json
import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, Optional, TextIO

from ._constants import (
    KEY_BYTES,
    KEY_DATE,
    KEY_MATCH,
    KEY_OBJECT,
    KEY_REF,
    KEY_SET,
    KEY_TERMS,
    KEY_TS,
)
from ._errors import ERR_TYPE, ExprError
from ._expr import (
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
    to_f32,
)

logger = logging.getLogger(__name__)


# ── Number formatting ────────────────────────────────────────

def _finite(x: float) -> Optional[float]:
    # JSON has no NaN or Infinity literal; the database reads null.
    if math.isfinite(x):
        return x
    logger.debug("non-finite float %r encoded as null", x)
    return None


def f32_shortest(x: float) -> float:
    """Return the double whose repr is the shortest decimal naming binary32 x.

    Float(4.12) holds 4.119999885559082; the wire should say 4.12, which is
    what a binary32 printer emits.  Nine significant digits always suffice.
    """
    for digits in range(1, 10):
        candidate = float("{:.{}g}".format(x, digits))
        if to_f32(candidate) == x:
            return candidate
    return x


def rfc3339(ts: datetime) -> str:
    """RFC3339 with automatic sub-second precision (none, ms or µs)."""
    if ts.microsecond == 0:
        timespec = "seconds"
    elif ts.microsecond % 1000 == 0:
        timespec = "milliseconds"
    else:
        timespec = "microseconds"
    return ts.isoformat(timespec=timespec)


# ── Per-variant encoders ─────────────────────────────────────

def _enc_scalar(value: Any) -> Any:
    return value.value


def _enc_double(value: Double) -> Any:
    return _finite(value.value)


def _enc_float(value: Float) -> Any:
    x = _finite(value.value)
    return None if x is None else f32_shortest(x)


def _enc_null(value: Null) -> Any:
    return None


def _enc_bytes(value: Bytes) -> Any:
    return {KEY_BYTES: base64.b64encode(value.value).decode("ascii")}


def _enc_date(value: Date) -> Any:
    # isoformat() zero-pads the year; strftime("%Y") does not everywhere.
    return {KEY_DATE: value.value.isoformat()}


def _enc_timestamp(value: Timestamp) -> Any:
    return {KEY_TS: rfc3339(value.value)}


def _enc_ref(value: Ref) -> Any:
    return {KEY_REF: value.path()}


def _enc_object(value: Object) -> Any:
    return {KEY_OBJECT: {key: _encode(item) for key, item in value.items()}}


def _enc_array(value: Array) -> Any:
    return [_encode(item) for item in value]


def _enc_set(value: Set) -> Any:
    return {KEY_SET: {KEY_MATCH: _encode(value.match), KEY_TERMS: _encode(value.terms)}}


_ENCODERS: Dict[type, Callable[[Any], Any]] = {
    String: _enc_scalar,
    Double: _enc_double,
    Float: _enc_float,
    Int: _enc_scalar,
    UInt: _enc_scalar,
    Boolean: _enc_scalar,
    Null: _enc_null,
    Bytes: _enc_bytes,
    Date: _enc_date,
    Timestamp: _enc_timestamp,
    Ref: _enc_ref,
    Object: _enc_object,
    Array: _enc_array,
    Set: _enc_set,
}

# Exhaustiveness: every variant has exactly one encoder.
_missing = set(VARIANTS) ^ set(_ENCODERS)
if _missing:
    raise ImportError(
        "encoder table out of sync with VARIANTS: {}".format(
            sorted(cls.__name__ for cls in _missing)
        )
    )


def _encode(value: Expr) -> Any:
    fn = _ENCODERS.get(type(value))
    if fn is None:
        raise ExprError(ERR_TYPE, "not an Expr variant: {}".format(type(value).__name__))
    return fn(value)


# ── Public helpers ───────────────────────────────────────────

def to_wire(value: Any) -> Any:
    """Encode a value to its wire document (JSON-compatible Python data).

    Accepts an Expr or anything expr() converts.  Dicts in the result keep
    the tree's key order.
    """
    return _encode(expr(value))


def dumps(value: Any, indent: Optional[int] = None) -> str:
    """Encode a value to JSON text.  Compact unless indent is given."""
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(
        to_wire(value),
        separators=separators,
        indent=indent,
        ensure_ascii=False,
        allow_nan=False,
    )


def dumps_bytes(value: Any) -> bytes:
    """Encode a value to UTF-8 JSON bytes, ready for an application/json body."""
    return dumps(value).encode("utf-8")


def dump(value: Any, fp: TextIO, indent: Optional[int] = None) -> None:
    """Encode a value and write the text to fp.

    The document is fully built before the single write, so a sink failure
    never interrupts encoding halfway.  Sink exceptions are not wrapped.
    """
    fp.write(dumps(value, indent=indent))
