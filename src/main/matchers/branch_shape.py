from typing import Callable, Optional

from tree_sitter import Node

from src.main.gotypes.types import Type
from src.main.matchers.classifiers import is_numeric_like
from src.main.utils.go_parser import named, operator, statements

TypeOf = Callable[[Node], Optional[Type]]

BASIC_LITERALS = frozenset({
    "int_literal", "float_literal", "imaginary_literal", "rune_literal",
    "interpreted_string_literal", "raw_string_literal",
})
NAMES = frozenset({"identifier", "true", "false", "nil", "iota"})


def only_assigns_number(block: Node, type_of: TypeOf) -> bool:
    """True for a block that is just ``x = n`` where n is a ~number literal or name."""
    body = statements(block)
    if len(body) != 1:
        return False
    assign = body[0]
    if assign.type != "assignment_statement" or operator(assign) != "=":
        return False
    if len(named(assign.child_by_field_name("left"))) != 1:
        return False
    rhs = named(assign.child_by_field_name("right"))[0]
    if rhs.type not in BASIC_LITERALS and rhs.type not in NAMES:
        return False
    return is_numeric_like(type_of(rhs))


def is_iverson_conditional(node: Node, type_of: TypeOf) -> bool:
    """True for an if with a plain else whose branches only set a number."""
    alternative = node.child_by_field_name("alternative")
    if alternative is None or alternative.type != "block":
        return False
    consequence = node.child_by_field_name("consequence")
    return only_assigns_number(consequence, type_of) and only_assigns_number(alternative, type_of)
