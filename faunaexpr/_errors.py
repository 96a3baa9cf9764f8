"""Error codes and the exception class.

Every failure raised by this package is an ExprError whose `.code` is one of
the ERR_* strings below.  Errors coming out of an output sink during dump()
are NOT wrapped: the sink's own exception reaches the caller unchanged.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────

ERR_JSON_SHAPE: str = "ERR_JSON_SHAPE"  # composite JSON on the scalar path
ERR_TYPE: str = "ERR_TYPE"              # unsupported type or bad payload
ERR_RANGE: str = "ERR_RANGE"            # number outside the representable range
ERR_JSON: str = "ERR_JSON"              # malformed JSON text
ERR_UTF8: str = "ERR_UTF8"              # JSON input is not valid UTF-8


class ExprError(Exception):
    """Exception for value construction and conversion errors.

    The `.code` attribute is one of the ERR_* strings above.  ERR_JSON_SHAPE
    marks a programming error: composite JSON reached Expr.from_json instead
    of json_to_expr.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code
