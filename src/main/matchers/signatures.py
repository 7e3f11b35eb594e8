from typing import Optional

from src.main.gotypes.types import Map, Signature, Type, underlying
from src.main.matchers.classifiers import is_boolean_like, is_numeric_like


def is_bracket_callable(typ: Optional[Type]) -> bool:
    """True if ``typ`` is a func from a ~bool to a ~number."""
    sig = underlying(typ)
    if not isinstance(sig, Signature):
        return False
    if sig.recv is not None or sig.variadic:
        return False
    if len(sig.params) != 1 or len(sig.results) != 1:
        return False
    return is_boolean_like(sig.params[0].type) and is_numeric_like(sig.results[0].type)


def is_bracket_mapping(typ: Optional[Type]) -> bool:
    """True if ``typ`` is a map[~bool]~number."""
    if not isinstance(typ, Map):
        return False
    return is_boolean_like(typ.key) and is_numeric_like(typ.elem)
