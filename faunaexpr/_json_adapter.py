"""Generic JSON → Expr adapter.

Expr.from_json only takes scalars.  This module does the decomposition it
asks callers to do: arrays become Array, objects become Object with their
keys in document order, and scalars go through Expr.from_json.

Type mapping:
    JSON object  → Object   (document key order; a repeated key keeps its
                             first position and its last value)
    JSON array   → Array
    JSON string  → String
    JSON boolean → Boolean
    JSON integer → Int, else UInt, else Double
    JSON float   → Double
    JSON null    → Null
    NaN/Infinity → ERR_JSON (not JSON, whatever Python's parser thinks)

Number tokens are checked as they are scanned: an integer too long for
int() or a float token that overflows to infinity is ERR_RANGE.
"""

from __future__ import annotations

import json
import math
from typing import Any, NoReturn, Union

from ._errors import ERR_JSON, ERR_RANGE, ERR_TYPE, ERR_UTF8, ExprError
from ._expr import Array, Expr, Object


# ── Token hooks ──────────────────────────────────────────────
# json.loads() calls parse_int for number tokens without '.' or 'e' and
# parse_float for the rest.

def _reject_constant(name: str) -> NoReturn:
    raise ExprError(ERR_JSON, "JSON constant {} not allowed".format(name))


def _intercept_int(s: str) -> int:
    try:
        return int(s)
    except ValueError:
        # Digit limit for int/str conversion (3.11+).
        raise ExprError(ERR_RANGE, "JSON integer of {} digits too long".format(len(s)))


def _intercept_float(s: str) -> float:
    val = float(s)
    if math.isinf(val):
        raise ExprError(ERR_RANGE, "JSON number {} overflows a double".format(s))
    return val


def parse_json(raw: Union[bytes, bytearray, str]) -> Any:
    """Parse JSON text (UTF-8 bytes or str) into plain Python values."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            raise ExprError(ERR_UTF8, "invalid UTF-8 in JSON input")
    elif isinstance(raw, str):
        text = raw
    else:
        raise ExprError(ERR_TYPE, "JSON input must be bytes or str, got {}".format(
            type(raw).__name__))

    try:
        return json.loads(
            text,
            parse_int=_intercept_int,
            parse_float=_intercept_float,
            parse_constant=_reject_constant,
        )
    except ExprError:
        raise
    except RecursionError:
        raise ExprError(ERR_JSON, "JSON nesting too deep")
    except ValueError as e:
        raise ExprError(ERR_JSON, "JSON parse error: {}".format(e))


def json_to_expr(x: Any) -> Expr:
    """Recursively convert a parsed JSON value to an Expr tree."""
    if isinstance(x, dict):
        obj = Object()
        for key, value in x.items():
            obj.insert(key, json_to_expr(value))
        return obj

    if isinstance(x, list):
        return Array([json_to_expr(item) for item in x])

    return Expr.from_json(x)


def loads_expr(raw: Union[bytes, bytearray, str]) -> Expr:
    """Parse JSON text straight into an Expr tree."""
    parsed = parse_json(raw)
    try:
        return json_to_expr(parsed)
    except RecursionError:
        raise ExprError(ERR_JSON, "JSON nesting too deep")
