from __future__ import annotations
from typing import Any

from conifer_local.domain.errors import BadRequestError

_MISSING = object()


def _is_list(v): return isinstance(v, list)


def _op_eq(v, arg):
    if _is_list(v): return arg in v
    return v == arg

def _op_ne(v, arg):
    if v is _MISSING: return True
    return not _op_eq(v, arg)

def _op_in(v, arg):
    if not isinstance(arg, list):
        raise BadRequestError("$in operator requires a list")
    if _is_list(v): return any(x in arg for x in v)
    return v in arg

def _op_nin(v, arg):
    if v is _MISSING: return True
    return not _op_in(v, arg)

def _num(v): return isinstance(v, (int, float)) and not isinstance(v, bool)

def _op_gt(v, arg): return _num(v) and _num(arg) and v > arg
def _op_gte(v, arg): return _num(v) and _num(arg) and v >= arg
def _op_lt(v, arg): return _num(v) and _num(arg) and v < arg
def _op_lte(v, arg): return _num(v) and _num(arg) and v <= arg

_OPS = {
    "$eq": _op_eq, "$ne": _op_ne, "$in": _op_in, "$nin": _op_nin,
    "$gt": _op_gt, "$gte": _op_gte, "$lt": _op_lt, "$lte": _op_lte,
}

# operators that are evaluated even when the field is absent
_MISSING_OK = {"$ne", "$nin"}


def _match_field(md: dict[str, Any], field: str, cond: Any) -> bool:
    v = md.get(field, _MISSING)
    if not isinstance(cond, dict):
        cond = {"$eq": cond}
    for op, arg in cond.items():
        if op == "$exists":
            if (v is not _MISSING) != bool(arg):
                return False
            continue
        fn = _OPS.get(op)
        if fn is None:
            raise BadRequestError(f"unsupported filter operator {op}")
        if v is _MISSING and op not in _MISSING_OK:
            return False
        if not fn(v, arg):
            return False
    return True


def match_metadata(metadata: dict[str, Any] | None, spec: dict[str, Any] | None) -> bool:
    """
    spec format: {"genre": {"$in": ["drama", "comedy"]}, "year": {"$gte": 2020}}
    top-level keys are ANDed; "$and" / "$or" take lists of sub-filters,
    a bare value means "$eq".
    """
    if not spec: return True
    md = metadata or {}
    for key, cond in spec.items():
        if key == "$and":
            if not all(match_metadata(md, sub) for sub in cond): return False
        elif key == "$or":
            if not any(match_metadata(md, sub) for sub in cond): return False
        elif key.startswith("$"):
            raise BadRequestError(f"unsupported filter operator {key}")
        elif not _match_field(md, key, cond):
            return False
    return True
