from functools import lru_cache

import tree_sitter_go
from tree_sitter import Language, Node, Parser, Tree


@lru_cache
def _get_parser() -> Parser:
    language = Language(tree_sitter_go.language())
    return Parser(language)


def parse_tree(code: bytes) -> Tree:
    return _get_parser().parse(code)


def parse(code: str) -> Node:
    return parse_tree(code.encode("utf8")).root_node


def text(node: Node) -> str:
    return node.text.decode("utf8")


def operator(node: Node) -> str:
    op = node.child_by_field_name("operator")
    if op is None:
        op = next((c for c in node.children if not c.is_named), None)
    return op.type if op is not None else ""


def named(node: Node) -> list:
    """Named children without comments."""
    return [c for c in node.children if c.is_named and c.type != "comment"]


def statements(block: Node) -> list:
    """Statements of a block, whether or not the grammar wraps them in a statement_list."""
    out = []
    for child in named(block):
        if child.type == "statement_list":
            out.extend(named(child))
        else:
            out.append(child)
    return out
