"""Value model: the closed Expr union and conversions from native values.

Fourteen variants, no more:

    String  Double  Float  Int  UInt  Boolean  Null
    Bytes   Date    Timestamp
    Ref     Object  Array  Set

Expr is sealed: subclassing it outside this module raises TypeError, and
the encoder checks at import time that it handles every entry of VARIANTS.
Adding a variant therefore means touching this module, the encoder and
VARIANTS together.

Payloads are validated on construction, so a tree that was built without
raising is always encodable.  Everything except Object is immutable once
built; Object accepts insertions while a document is being assembled.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, ItemsView, Iterable, Iterator, KeysView, Optional, Tuple, ValuesView

from ._constants import (
    COLL_CLASSES,
    COLL_DATABASES,
    COLL_FUNCTIONS,
    COLL_INDEXES,
    COLL_KEYS,
    INT64_MAX,
    INT64_MIN,
    REF_SEPARATOR,
    UINT64_MAX,
)
from ._errors import ERR_JSON_SHAPE, ERR_RANGE, ERR_TYPE, ExprError

logger = logging.getLogger(__name__)


def _type_error(variant: str, expected: str, got: Any) -> ExprError:
    return ExprError(
        ERR_TYPE,
        "{} payload must be {}, got {}".format(variant, expected, type(got).__name__),
    )


def to_f32(x: float) -> float:
    """Round a double to the nearest binary32 value (still as a Python float)."""
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        # Finite but beyond FLT_MAX: binary32 saturates to infinity.
        return float("inf") if x > 0 else float("-inf")


# ── Sealed base ──────────────────────────────────────────────

class Expr:
    """Base class of the value union.  Not instantiable on its own."""

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__module__ != __name__:
            raise TypeError("Expr is a closed union; {} cannot extend it".format(cls.__qualname__))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("{} is immutable".format(type(self).__name__))

    def __delattr__(self, name: str) -> None:
        raise AttributeError("{} is immutable".format(type(self).__name__))

    @staticmethod
    def from_json(value: Any) -> "Expr":
        """Convert a generic JSON scalar (as json.loads returns it).

        Numbers classify integer-exact first, then unsigned-exact, then fall
        back to Double.  Arrays and objects are not accepted on this path:
        decompose them first, or call json_to_expr() which does so.
        """
        if value is None:
            return NULL
        if isinstance(value, bool):
            return Boolean(value)
        if isinstance(value, int):
            if INT64_MIN <= value <= INT64_MAX:
                return Int(value)
            if 0 <= value <= UINT64_MAX:
                return UInt(value)
            try:
                approx = float(value)
            except OverflowError:
                raise ExprError(ERR_RANGE, "JSON integer too large for a double")
            logger.debug("JSON integer %d exceeds 64 bits, demoted to Double", value)
            return Double(approx)
        if isinstance(value, float):
            return Double(value)
        if isinstance(value, str):
            return String(value)
        if isinstance(value, (list, dict)):
            raise ExprError(
                ERR_JSON_SHAPE,
                "composite JSON ({}) is not supported by Expr.from_json; "
                "use json_to_expr".format(type(value).__name__),
            )
        raise _type_error("JSON", "null, bool, number or str", value)


# ── Scalars ──────────────────────────────────────────────────
# Value semantics: equal when the variant and the payload are equal.
# Int(1) != UInt(1) != Double(1.0) because they encode differently.

class _Scalar(Expr):
    __slots__ = ("value",)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.value == other.value  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.value))

    def __repr__(self) -> str:
        return "{}({!r})".format(type(self).__name__, self.value)


class String(_Scalar):
    __slots__ = ()

    def __init__(self, value: str) -> None:
        if not isinstance(value, str):
            raise _type_error("String", "str", value)
        object.__setattr__(self, "value", value)


class Double(_Scalar):
    """64-bit float."""

    __slots__ = ()

    def __init__(self, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _type_error("Double", "float", value)
        object.__setattr__(self, "value", float(value))


class Float(_Scalar):
    """32-bit float.  The payload is rounded to binary32 on construction."""

    __slots__ = ()

    def __init__(self, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _type_error("Float", "float", value)
        object.__setattr__(self, "value", to_f32(float(value)))


class Int(_Scalar):
    """Signed 64-bit integer."""

    __slots__ = ()

    def __init__(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _type_error("Int", "int", value)
        if value < INT64_MIN or value > INT64_MAX:
            raise ExprError(ERR_RANGE, "integer {} outside int64 range".format(value))
        object.__setattr__(self, "value", value)


class UInt(_Scalar):
    """Unsigned 64-bit integer."""

    __slots__ = ()

    def __init__(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _type_error("UInt", "int", value)
        if value < 0 or value > UINT64_MAX:
            raise ExprError(ERR_RANGE, "integer {} outside uint64 range".format(value))
        object.__setattr__(self, "value", value)


class Boolean(_Scalar):
    __slots__ = ()

    def __init__(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise _type_error("Boolean", "bool", value)
        object.__setattr__(self, "value", value)


class Null(Expr):
    """The null value.  There is exactly one instance, NULL."""

    __slots__ = ()
    _instance: Optional["Null"] = None

    def __new__(cls) -> "Null":
        if Null._instance is None:
            Null._instance = super().__new__(cls)
        return Null._instance

    def __repr__(self) -> str:
        return "NULL"


NULL = Null()


class Bytes(_Scalar):
    """Binary payload.

    Bytes(data) takes an owned copy.  Bytes.borrowed(buffer) wraps the
    caller's buffer in a memoryview without copying; the buffer must stay
    alive and unmodified until the value has been encoded.
    """

    __slots__ = ()

    def __init__(self, value: Any) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise _type_error("Bytes", "bytes-like", value)
        object.__setattr__(self, "value", bytes(value))

    @classmethod
    def borrowed(cls, buffer: Any) -> "Bytes":
        try:
            view = memoryview(buffer)
        except TypeError:
            raise _type_error("Bytes", "a buffer", buffer)
        # base64 needs one contiguous run; a strided view cannot be encoded.
        if not view.c_contiguous:
            raise _type_error("Bytes", "a contiguous buffer", buffer)
        if view.ndim != 1 or view.format != "B":
            view = view.cast("B")
        obj = cls.__new__(cls)
        object.__setattr__(obj, "value", view)
        return obj

    @property
    def is_borrowed(self) -> bool:
        return isinstance(self.value, memoryview)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bytes):
            return NotImplemented
        return bytes(self.value) == bytes(other.value)

    def __hash__(self) -> int:
        return hash(("Bytes", bytes(self.value)))

    def __repr__(self) -> str:
        return "Bytes({!r})".format(bytes(self.value))


class Date(_Scalar):
    """Calendar date without a time of day."""

    __slots__ = ()

    def __init__(self, value: date) -> None:
        # datetime is a subclass of date; an instant belongs in Timestamp.
        if isinstance(value, datetime) or not isinstance(value, date):
            raise _type_error("Date", "datetime.date", value)
        object.__setattr__(self, "value", value)


class Timestamp(_Scalar):
    """UTC instant.  Aware datetimes in other zones are converted to UTC."""

    __slots__ = ()

    def __init__(self, value: datetime) -> None:
        if not isinstance(value, datetime):
            raise _type_error("Timestamp", "datetime.datetime", value)
        if value.tzinfo is None or value.utcoffset() is None:
            raise ExprError(ERR_TYPE, "Timestamp needs a timezone-aware datetime")
        object.__setattr__(self, "value", value.astimezone(timezone.utc))


# ── Ref ──────────────────────────────────────────────────────

class Ref(Expr):
    """A name plus an optional parent Ref.

    The path joins names from the outermost parent down to this one:

        >>> Ref("foo", Ref.class_("test")).path()
        'classes/test/foo'
    """

    __slots__ = ("name", "parent")

    def __init__(self, name: str, parent: Optional["Ref"] = None) -> None:
        if not isinstance(name, str):
            raise _type_error("Ref name", "str", name)
        if parent is not None and not isinstance(parent, Ref):
            raise _type_error("Ref parent", "Ref", parent)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "parent", parent)

    @classmethod
    def class_(cls, name: str) -> "Ref":
        return cls(name, cls(COLL_CLASSES))

    collection = class_

    @classmethod
    def index(cls, name: str) -> "Ref":
        return cls(name, cls(COLL_INDEXES))

    @classmethod
    def database(cls, name: str) -> "Ref":
        return cls(name, cls(COLL_DATABASES))

    @classmethod
    def function(cls, name: str) -> "Ref":
        return cls(name, cls(COLL_FUNCTIONS))

    @classmethod
    def key(cls, name: str) -> "Ref":
        return cls(name, cls(COLL_KEYS))

    def path(self) -> str:
        names = []
        node: Optional[Ref] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return REF_SEPARATOR.join(reversed(names))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self.name == other.name and self.parent == other.parent

    def __hash__(self) -> int:
        return hash(("Ref", self.name, self.parent))

    def __repr__(self) -> str:
        if self.parent is None:
            return "Ref({!r})".format(self.name)
        return "Ref({!r}, {!r})".format(self.name, self.parent)

    def __str__(self) -> str:
        return self.path()


# ── Containers ───────────────────────────────────────────────

class Object(Expr):
    """Ordered, string-keyed map of Expr values.

    Keys come out on the wire in insertion order.  Inserting an existing key
    replaces its value in place, so the key keeps its first position.
    """

    __slots__ = ("_entries",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, entries: Any = None) -> None:
        object.__setattr__(self, "_entries", {})
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in pairs:
            self.insert(key, value)

    def insert(self, key: str, value: Any) -> "Object":
        if not isinstance(key, str):
            raise _type_error("Object key", "str", key)
        self._entries[key] = expr(value)
        return self

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, key: str) -> Expr:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, key: str, default: Optional[Expr] = None) -> Optional[Expr]:
        return self._entries.get(key, default)

    def keys(self) -> KeysView[str]:
        return self._entries.keys()

    def values(self) -> ValuesView[Expr]:
        return self._entries.values()

    def items(self) -> ItemsView[str, Expr]:
        return self._entries.items()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Object):
            return NotImplemented
        # Order-sensitive: two maps in different orders encode differently.
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return "Object({!r})".format(self._entries)


class Array(Expr):
    """Ordered list of Expr values."""

    __slots__ = ("items",)

    def __init__(self, items: Iterable[Any] = ()) -> None:
        if isinstance(items, (str, bytes, bytearray, memoryview, Mapping)):
            raise _type_error("Array", "an iterable of values", items)
        object.__setattr__(self, "items", tuple(expr(item) for item in items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Expr]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Expr:
        return self.items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self.items == other.items

    def __hash__(self) -> int:
        return hash(("Array", self.items))

    def __repr__(self) -> str:
        return "Array({!r})".format(list(self.items))


class Set(Expr):
    """A match predicate (the index or collection to match, plus terms).

    This is data, not a live cursor: the encoder writes it out as-is.
    """

    __slots__ = ("match", "terms")
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, match: Ref, terms: Any) -> None:
        if not isinstance(match, Ref):
            raise _type_error("Set match", "Ref", match)
        object.__setattr__(self, "match", match)
        object.__setattr__(self, "terms", expr(terms))

    @classmethod
    def matching(cls, match: Ref, terms: Any) -> "Set":
        return cls(match, terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Set):
            return NotImplemented
        return self.match == other.match and self.terms == other.terms

    def __repr__(self) -> str:
        return "Set.matching({!r}, {!r})".format(self.match, self.terms)


VARIANTS: Tuple[type, ...] = (
    String, Double, Float, Int, UInt, Boolean, Null,
    Bytes, Date, Timestamp, Ref, Object, Array, Set,
)


# ── Native → Expr ────────────────────────────────────────────

def expr(value: Any) -> Expr:
    """Build an Expr from a native Python value.

    An Expr passes through untouched.  Integers become Int when they fit in
    signed 64 bits and UInt when only the unsigned range holds them.  Floats
    become Double; wrap in Float() to send a 32-bit value.  Lists and tuples
    become Array, mappings become Object, both converted element by element.
    """
    if isinstance(value, Expr):
        return value
    if value is None:
        return NULL
    # bool before int: isinstance(True, int) is True.
    if isinstance(value, bool):
        return Boolean(value)
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return Int(value)
        if 0 <= value <= UINT64_MAX:
            return UInt(value)
        raise ExprError(ERR_RANGE, "integer {} outside the 64-bit ranges".format(value))
    if isinstance(value, float):
        return Double(value)
    if isinstance(value, str):
        return String(value)
    if isinstance(value, (bytes, bytearray)):
        return Bytes(value)
    if isinstance(value, memoryview):
        return Bytes.borrowed(value)
    # datetime before date, same subclass trap.
    if isinstance(value, datetime):
        return Timestamp(value)
    if isinstance(value, date):
        return Date(value)
    if isinstance(value, (list, tuple)):
        return Array(value)
    if isinstance(value, Mapping):
        return Object(value)
    raise ExprError(ERR_TYPE, "cannot convert {} to Expr".format(type(value).__name__))
