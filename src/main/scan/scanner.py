import sys
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from tqdm.contrib.concurrent import process_map
from tree_sitter import Node

from src.main import config
from src.main.detectors import EXPLICIT, FORMS, IMPLICIT, detect
from src.main.loader.program_loader import SourceUnit
from src.main.matchers.branch_shape import TypeOf


class HitRecord(NamedTuple):
    path: Path
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


class ScanResult(NamedTuple):
    unit: str
    implicit: int
    explicit: int

    @property
    def total(self) -> int:
        return self.implicit + self.explicit


def print_hit(hit: HitRecord) -> None:
    print(hit, file=sys.stderr)


class Counter:
    """
    Counts implicit (if/else) and explicit (func or map) Iverson brackets in one unit.
    """

    def __init__(self, unit: SourceUnit, emit: Callable[[HitRecord], None] = print_hit) -> None:
        self.unit = unit
        self.emit = emit
        self.counts: Dict[str, int] = dict.fromkeys(FORMS, 0)
        self.path: Optional[Path] = None
        self.type_of: TypeOf = lambda node: None

    def walk(self, node: Node) -> None:
        """Pre-order walk calling ``inspect`` on every node it reaches."""
        stack = [node]
        while stack:
            current = stack.pop()
            if self.inspect(current):
                stack.extend(reversed(current.children))

    def inspect(self, node: Node) -> bool:
        """Visit one node; False stops the walk from descending into it."""
        if node.type == "if_statement":
            self.visit_if(node)
            return False
        self.record(node)
        return True

    def record(self, node: Node) -> bool:
        """Count and emit the bracket at ``node``, if any."""
        form = detect(node, self.type_of)
        if form is None:
            return False
        self.counts[form] += 1
        self.hit(node)
        return True

    def visit_if(self, node: Node) -> None:
        if self.record(node):
            self.walk_parts(node, ("initializer", "condition"))
            return
        # scan the parts by hand so each else-if link is judged on its own
        self.recur_on_if(node)

    def recur_on_if(self, node: Node) -> None:
        self.walk_parts(node, ("initializer", "condition", "consequence"))
        alternative = node.child_by_field_name("alternative")
        if alternative is None:
            return
        if alternative.type == "if_statement":
            self.visit_if(alternative)
        else:
            self.walk(alternative)

    def walk_parts(self, node: Node, parts: Tuple[str, ...]) -> None:
        for part in parts:
            child = node.child_by_field_name(part)
            if child is not None:
                self.walk(child)

    def hit(self, node: Node) -> None:
        row, col = node.start_point
        self.emit(HitRecord(self.path, row + 1, col + 1))

    def run(self) -> ScanResult:
        for path, root, info in self.unit.files():
            self.path = path
            self.type_of = info.type_of
            self.walk(root)
        return ScanResult(self.unit.id, self.counts[IMPLICIT], self.counts[EXPLICIT])


def find(unit: SourceUnit, emit: Callable[[HitRecord], None] = print_hit) -> ScanResult:
    """Scan one unit, emitting a hit record for every match in source order."""
    return Counter(unit, emit).run()


def _find_collecting(unit: SourceUnit) -> Tuple[ScanResult, List[HitRecord]]:
    hits: List[HitRecord] = []
    return find(unit, hits.append), hits


def scan_all(
    units: Sequence[SourceUnit],
    workers: int = config.WORKERS,
    emit: Callable[[HitRecord], None] = print_hit,
) -> List[ScanResult]:
    """
    Scan every unit.

    Args:
        units (Sequence[SourceUnit]): Loaded units.
        workers (int): Worker processes; 1 scans sequentially in this process.
        emit (Callable): Receives every hit record, in unit and source order.

    Returns:
        List of per-unit results in unit order.
    """
    if workers <= 1 or len(units) <= 1:
        return [find(unit, emit) for unit in units]

    outcomes = process_map(
        _find_collecting,
        units,
        max_workers=workers,
        chunksize=config.CHUNKSIZE,
        desc="Scanning",
    )
    results: List[ScanResult] = []
    for result, hits in outcomes:
        for hit in hits:
            emit(hit)
        results.append(result)
    return results
