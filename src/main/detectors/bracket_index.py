from tree_sitter import Node

from src.main.detectors import detector
from src.main.matchers.branch_shape import TypeOf
from src.main.matchers.signatures import is_bracket_mapping


@detector("index_expression")
def bracket_index(node: Node, type_of: TypeOf) -> bool:
    # reading from a map[~bool]~number
    operand = node.child_by_field_name("operand")
    return operand is not None and is_bracket_mapping(type_of(operand))
