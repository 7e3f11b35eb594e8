import pytest

from src.main.gotypes.types import (
    BOOL,
    COMPLEX128,
    FLOAT64,
    INT,
    INT32,
    STRING,
    UNTYPED_BOOL,
    UNTYPED_COMPLEX,
    UNTYPED_FLOAT,
    UNTYPED_INT,
    UNTYPED_NIL,
    UNTYPED_RUNE,
    UNTYPED_STRING,
    Map,
    Named,
    Signature,
    Slice,
    TypeParam,
    Var,
    default,
    instantiate,
    method,
    substitute,
    underlying,
)


@pytest.mark.parametrize(
    "typ, expected",
    [
        pytest.param(UNTYPED_BOOL, BOOL, id="untyped-bool"),
        pytest.param(UNTYPED_INT, INT, id="untyped-int"),
        pytest.param(UNTYPED_RUNE, INT32, id="untyped-rune"),
        pytest.param(UNTYPED_FLOAT, FLOAT64, id="untyped-float"),
        pytest.param(UNTYPED_COMPLEX, COMPLEX128, id="untyped-complex"),
        pytest.param(UNTYPED_STRING, STRING, id="untyped-string"),
        pytest.param(UNTYPED_NIL, UNTYPED_NIL, id="nil-stays"),
        pytest.param(FLOAT64, FLOAT64, id="typed-unchanged"),
        pytest.param(None, None, id="absent"),
    ],
)
def test_default(typ, expected) -> None:
    assert default(typ) == expected


def test_underlying_follows_named_chain() -> None:
    inner = Named("Inner", INT)
    outer = Named("Outer", inner)
    assert underlying(outer) == INT
    assert underlying(INT) == INT


def test_underlying_of_cycle_is_absent() -> None:
    a = Named("A")
    b = Named("B", a)
    a.rhs = b
    assert underlying(a) is None


def test_instantiate_resolves_rhs_and_methods() -> None:
    t = TypeParam("T")
    box = Named("Box", Map(BOOL, t), type_params=(t,))
    box.methods["Get"] = Signature(Var("b", box), (Var("c", BOOL),), (Var("", t),))

    inst = instantiate(box, (FLOAT64,))

    assert underlying(inst) == Map(BOOL, FLOAT64)
    assert method(inst, "Get").results == (Var("", FLOAT64),)
    assert method(inst, "Missing") is None


def test_substitute_drops_bound_type_params() -> None:
    t = TypeParam("T")
    sig = Signature(None, (Var("x", Slice(t)),), (Var("", t),), False, (t,))
    out = substitute(sig, {t: INT})
    assert out.params == (Var("x", Slice(INT)),)
    assert out.results == (Var("", INT),)
    assert out.type_params == ()
