from tree_sitter import Node

from src.main.detectors import IMPLICIT, detector
from src.main.matchers.branch_shape import TypeOf, is_iverson_conditional


@detector("if_statement", IMPLICIT)
def iverson_if(node: Node, type_of: TypeOf) -> bool:
    # if/else whose branches only set a number
    return is_iverson_conditional(node, type_of)
