from typing import Optional

from src.main.gotypes.types import Basic, Kind, Type, default, underlying

NUMERIC_KINDS = frozenset({
    Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64,
    Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINT32, Kind.UINT64,
    Kind.FLOAT32, Kind.FLOAT64,
    Kind.COMPLEX64, Kind.COMPLEX128,
})


def _basic_kind(typ: Optional[Type]) -> Optional[Kind]:
    if typ is None:
        return None
    u = underlying(default(typ))
    return u.kind if isinstance(u, Basic) else None


def is_boolean_like(typ: Optional[Type]) -> bool:
    return _basic_kind(typ) == Kind.BOOL


def is_numeric_like(typ: Optional[Type]) -> bool:
    return _basic_kind(typ) in NUMERIC_KINDS
