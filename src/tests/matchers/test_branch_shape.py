import pytest

from src.main.gotypes.types import INT
from src.main.matchers.branch_shape import is_iverson_conditional, only_assigns_number

CASES = {
    "literals": "if c { x = 1 } else { x = 0 }",
    "floats": "if c { f = 1.5 } else { f = 0 }",
    "names": "if c { x = one } else { x = zero }",
    "constant": "if c { x = high } else { x = 0 }",
    "strings": "if c { s = \"a\" } else { s = \"b\" }",
    "bools": "if c { b = true } else { b = false }",
    "expression": "if c { x = one + 1 } else { x = 0 }",
    "call": "if c { x = count() } else { x = 0 }",
    "short-var": "if c { y := 1; _ = y } else { x = 0 }",
    "compound": "if c { x += 1 } else { x = 0 }",
    "two-statements": "if c { x = 1; x = 2 } else { x = 0 }",
    "tuple": "if c { x, one = 1, 2 } else { x = 0 }",
    "no-else": "if c { x = 1 }",
    "else-if": "if c { x = 1 } else if !c { x = 0 }",
}


def _source(body: str) -> str:
    return f"""package p

const high = 3

func count() int {{ return 0 }}

func f(c bool) {{
	var x int
	var f float64
	var s string
	var b bool
	one, zero := 1, 0
	{body}
	_, _, _, _, _, _ = x, f, s, b, one, zero
}}
"""


@pytest.fixture
def first_if(go_package, unit_nodes):
    def _first(body: str):
        unit = go_package(_source(body))
        return unit_nodes(unit, "if_statement")[0]

    return _first


@pytest.mark.parametrize(
    "case, expected",
    [
        pytest.param("literals", True, id="literals"),
        pytest.param("floats", True, id="floats"),
        pytest.param("names", True, id="names"),
        pytest.param("constant", True, id="constant"),
        pytest.param("strings", False, id="strings"),
        pytest.param("bools", False, id="bools"),
        pytest.param("expression", False, id="expression"),
        pytest.param("call", False, id="call"),
        pytest.param("short-var", False, id="short-var"),
        pytest.param("compound", False, id="compound"),
        pytest.param("two-statements", False, id="two-statements"),
        pytest.param("tuple", False, id="tuple"),
        pytest.param("no-else", False, id="no-else"),
        pytest.param("else-if", False, id="else-if"),
    ],
)
def test_is_iverson_conditional(first_if, case, expected):
    node, type_of = first_if(CASES[case])
    assert is_iverson_conditional(node, type_of) is expected


def test_only_assigns_number_checks_each_block(first_if):
    node, type_of = first_if("if c { x = 1 } else { s = \"b\" }")
    assert only_assigns_number(node.child_by_field_name("consequence"), type_of)
    assert not only_assigns_number(node.child_by_field_name("alternative"), type_of)
    assert not is_iverson_conditional(node, type_of)


def test_unresolved_types_never_match(first_if):
    node, _ = first_if(CASES["literals"])
    assert not is_iverson_conditional(node, lambda n: None)


class MockNode:
    """
    Minimal mock for tree_sitter.Node: type, children, named flag and fields.
    """

    def __init__(self, type_, children=None, fields=None, is_named=True):
        self.type = type_
        self.children = children if children is not None else []
        self.fields = fields or {}
        self.is_named = is_named

    def child_by_field_name(self, name):
        return self.fields.get(name)


def _assign(value_type, op="="):
    left = MockNode("expression_list", [MockNode("identifier")])
    right = MockNode("expression_list", [MockNode(value_type)])
    return MockNode(
        "assignment_statement",
        [left, MockNode(op, is_named=False), right],
        {"left": left, "right": right},
    )


def _block(*stmts):
    return MockNode("block", [MockNode("{", is_named=False), *stmts, MockNode("}", is_named=False)])


def _numeric(node):
    return INT


@pytest.mark.parametrize(
    "block, expected",
    [
        pytest.param(_block(_assign("int_literal")), True, id="literal"),
        pytest.param(_block(MockNode("comment"), _assign("identifier")), True, id="comment-ignored"),
        pytest.param(_block(MockNode("statement_list", [_assign("float_literal")])), True, id="statement-list"),
        pytest.param(_block(_assign("int_literal", ":=")), False, id="define"),
        pytest.param(_block(_assign("binary_expression")), False, id="expression"),
        pytest.param(_block(), False, id="empty"),
    ],
)
def test_only_assigns_number_on_mock_blocks(block, expected):
    assert only_assigns_number(block, _numeric) is expected
