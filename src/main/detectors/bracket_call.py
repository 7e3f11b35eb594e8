from tree_sitter import Node

from src.main.detectors import detector
from src.main.matchers.branch_shape import TypeOf
from src.main.matchers.signatures import is_bracket_callable


@detector("call_expression")
def bracket_call(node: Node, type_of: TypeOf) -> bool:
    # calling a func(~bool) ~number; method and package-qualified calls are skipped
    fn = node.child_by_field_name("function")
    if fn is None or fn.type == "selector_expression":
        return False
    return is_bracket_callable(type_of(fn))
