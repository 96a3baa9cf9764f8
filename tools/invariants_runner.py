#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Wire-encoding invariants (property tests) over random Expr trees.
#
# This runner:
# - generates random value trees (all fourteen variants) within limits
# - encodes each one and checks algebraic invariants of the wire form
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, random
from datetime import date, datetime, timedelta, timezone
from typing import Any, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from faunaexpr import (
    NULL, Array, Bytes, Date, Double, Expr, Float, Int, Object, Ref, Set,
    String, Timestamp, UInt, dumps, loads_expr, to_wire,
)

SEED = int(os.environ.get("FEXPR_SEED", "1337"))
TRIALS = int(os.environ.get("FEXPR_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("FEXPR_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("FEXPR_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("FEXPR_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("FEXPR_GEN_MAX_STR", "12"))

random.seed(SEED)

# Keys that collide with tags are the interesting ones.
TRICKY_KEYS = ["@ref", "@set", "@ts", "@date", "@bytes", "object", "match", "terms"]

def rand_str() -> str:
    out = []
    for _ in range(random.randint(0, MAX_STR)):
        r = random.random()
        if r < 0.80:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0xA0, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_key() -> str:
    return random.choice(TRICKY_KEYS) if random.random() < 0.2 else rand_str()

def rand_ref(depth: int = 0) -> Ref:
    r = random.random()
    if r < 0.3:
        return Ref.index(rand_str())
    if r < 0.5 or depth > 2:
        return Ref.class_(rand_str())
    return Ref(rand_str(), rand_ref(depth + 1))

def gen_scalar() -> Expr:
    r = random.randint(0, 9)
    if r == 0:
        return String(rand_str())
    if r == 1:
        return Double(random.uniform(-1e6, 1e6))
    if r == 2:
        return Float(random.uniform(-1e3, 1e3))
    if r == 3:
        return Int(random.randint(-(2**63), 2**63 - 1))
    if r == 4:
        return UInt(random.randint(0, 2**64 - 1))
    if r == 5:
        return NULL
    if r == 6:
        return Bytes(bytes(random.getrandbits(8) for _ in range(random.randint(0, 16))))
    if r == 7:
        return Date(date(1970, 1, 1) + timedelta(days=random.randint(0, 40000)))
    if r == 8:
        return Timestamp(datetime(2000, 1, 1, tzinfo=timezone.utc)
                         + timedelta(microseconds=random.randint(0, 10**15)))
    return rand_ref()

def gen_value(depth: int) -> Expr:
    if depth >= MAX_GEN_DEPTH:
        return gen_scalar()
    r = random.random()
    if r < 0.35:
        obj = Object()
        for _ in range(random.randint(0, MAX_KEYS)):
            obj.insert(rand_key(), gen_value(depth + 1))
        return obj
    if r < 0.60:
        return Array([gen_value(depth + 1) for _ in range(random.randint(0, MAX_LIST))])
    if r < 0.70:
        return Set.matching(rand_ref(), gen_value(depth + 1))
    return gen_scalar()

def fail(label: str, value: Expr) -> int:
    print("INVARIANT FAIL:", label)
    print("VALUE:", repr(value)[:2000])
    return 1

def check_wire(value: Expr, wire: Any) -> bool:
    """Every Object is wrapped under exactly one "object" key, with its keys in order."""
    if isinstance(value, Object):
        if not (isinstance(wire, dict) and list(wire) == ["object"]):
            return False
        inner = wire["object"]
        if list(inner) != list(value):
            return False
        return all(check_wire(value[k], inner[k]) for k in value)
    if isinstance(value, Array):
        return (isinstance(wire, list) and len(wire) == len(value)
                and all(check_wire(v, w) for v, w in zip(value, wire)))
    if isinstance(value, Set):
        return list(wire) == ["@set"] and check_wire(value.terms, wire["@set"]["terms"])
    return True

def key_sequence(value: Expr) -> List[str]:
    if isinstance(value, Object):
        out = []
        for k in value:
            out.append(k)
            out.extend(key_sequence(value[k]))
        return out
    if isinstance(value, Array):
        return [k for item in value for k in key_sequence(item)]
    if isinstance(value, Set):
        return key_sequence(value.terms)
    return []

def main() -> int:
    for _ in range(TRIALS):
        v = gen_value(0)

        # (1) Determinism: encode twice, same text.
        w1 = dumps(v)
        if w1 != dumps(v):
            return fail("encode determinism", v)

        # (2) Structural escaping and key order.
        if not check_wire(v, to_wire(v)):
            return fail("object wrapping / key order", v)

        # (3) The text is valid JSON that re-serializes to itself.
        if json.dumps(json.loads(w1), separators=(",", ":"), ensure_ascii=False) != w1:
            return fail("reparse stability", v)

        # (4) Plain JSON through the adapter keeps user key order.
        if isinstance(v, Object):
            plain = json.dumps({k: None for k in v})
            if list(loads_expr(plain)) != list(v):
                return fail("adapter key order", v)

        # (5) Key order flattens identically through the wire.
        if key_sequence(v) != key_sequence(loads_expr(json.dumps(strip_tags(to_wire(v))))):
            return fail("key order through wire", v)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

def strip_tags(wire: Any) -> Any:
    """Undo Object wrapping so user maps read back as plain JSON objects.

    Tagged forms other than "object" are dropped to null; only map keys
    matter for the key-order check.
    """
    if isinstance(wire, list):
        return [strip_tags(w) for w in wire]
    if isinstance(wire, dict):
        if "object" in wire:
            return {k: strip_tags(w) for k, w in wire["object"].items()}
        if "@set" in wire:
            return strip_tags(wire["@set"]["terms"])
        return None
    return wire

if __name__ == "__main__":
    raise SystemExit(main())
