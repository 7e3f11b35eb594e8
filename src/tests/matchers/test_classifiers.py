import pytest

from src.main.gotypes.types import (
    BOOL,
    FLOAT64,
    INT,
    STRING,
    UNTYPED_BOOL,
    UNTYPED_FLOAT,
    UNTYPED_INT,
    UNTYPED_NIL,
    UNTYPED_RUNE,
    Basic,
    Kind,
    Named,
    Pointer,
    Slice,
)
from src.main.matchers.classifiers import is_boolean_like, is_numeric_like


def _named(name, rhs):
    return Named(name, rhs)


@pytest.mark.parametrize(
    "typ, expected",
    [
        pytest.param(BOOL, True, id="bool"),
        pytest.param(UNTYPED_BOOL, True, id="untyped-bool"),
        pytest.param(_named("Flag", BOOL), True, id="named-bool"),
        pytest.param(_named("Outer", _named("Inner", BOOL)), True, id="named-chain"),
        pytest.param(INT, False, id="int"),
        pytest.param(Pointer(BOOL), False, id="pointer-to-bool"),
        pytest.param(None, False, id="unresolved"),
    ],
)
def test_is_boolean_like(typ, expected):
    assert is_boolean_like(typ) is expected


@pytest.mark.parametrize(
    "typ, expected",
    [
        pytest.param(INT, True, id="int"),
        pytest.param(FLOAT64, True, id="float64"),
        pytest.param(Basic(Kind.UINT16), True, id="uint16"),
        pytest.param(Basic(Kind.COMPLEX64), True, id="complex64"),
        pytest.param(UNTYPED_INT, True, id="untyped-int"),
        pytest.param(UNTYPED_FLOAT, True, id="untyped-float"),
        pytest.param(UNTYPED_RUNE, True, id="untyped-rune"),
        pytest.param(_named("Score", Basic(Kind.FLOAT32)), True, id="named-float"),
        pytest.param(Basic(Kind.UINTPTR), False, id="uintptr"),
        pytest.param(STRING, False, id="string"),
        pytest.param(BOOL, False, id="bool"),
        pytest.param(UNTYPED_NIL, False, id="nil"),
        pytest.param(Slice(INT), False, id="slice"),
        pytest.param(None, False, id="unresolved"),
    ],
)
def test_is_numeric_like(typ, expected):
    assert is_numeric_like(typ) is expected


def test_cyclic_named_type_is_neither():
    a = Named("A")
    b = Named("B", a)
    a.rhs = b
    assert not is_boolean_like(a)
    assert not is_numeric_like(a)
