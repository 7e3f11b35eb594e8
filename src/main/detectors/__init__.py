"""
Detectors of Iverson-bracket forms, keyed by the tree-sitter node type they inspect.

A detector is declared with ``@detector(node_type, form)`` and reports the
form it found, so the scanner counts hits without knowing which detector
produced them. Every submodule is imported when the package is, which
registers its detectors.
"""

import importlib
import pkgutil
from typing import Callable, Dict, NamedTuple, Optional

from tree_sitter import Node

from src.main.matchers.branch_shape import TypeOf

IMPLICIT = "implicit"
EXPLICIT = "explicit"
FORMS = (IMPLICIT, EXPLICIT)

Check = Callable[[Node, TypeOf], bool]


class Detector(NamedTuple):
    node_type: str
    form: str
    check: Check

    def __call__(self, node: Node, type_of: TypeOf) -> Optional[str]:
        """The form found at ``node``, or None."""
        return self.form if self.check(node, type_of) else None


registry: Dict[str, Detector] = {}


def detector(node_type: str, form: str = EXPLICIT):
    if form not in FORMS:
        raise ValueError(f"unknown bracket form: {form}")

    def wrapper(fn: Check) -> Check:
        if node_type in registry:
            raise ValueError(f"{node_type} already has a detector: {registry[node_type].check.__name__}")
        registry[node_type] = Detector(node_type, form, fn)
        return fn

    return wrapper


def detect(node: Node, type_of: TypeOf) -> Optional[str]:
    """Form of the bracket at ``node`` if a detector for its node type finds one."""
    found = registry.get(node.type)
    return found(node, type_of) if found is not None else None


for m in pkgutil.iter_modules(__path__):
    importlib.import_module(f"{__name__}.{m.name}")
