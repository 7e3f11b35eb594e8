import sys
from functools import cached_property
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from tree_sitter import Node, Tree

from src.main import config
from src.main.gotypes.checker import TypeInfo, check
from src.main.gotypes.importer import Importer
from src.main.loader.build_context import default_context, find_module, package_files
from src.main.utils.go_parser import parse_tree, text


class LoadError(Exception):
    """Raised before any scanning when the requested packages cannot be used."""


class LoadFailure(LoadError):
    """The packages could not be resolved, read, parsed or type-checked."""


class EmptyTarget(LoadError):
    """The patterns resolved to zero packages."""


class SourceUnit:
    """
    One Go package: its files, their syntax trees and resolved types.

    Trees and types are built lazily and dropped when pickled, so a unit can
    be handed to a worker process and rebuilt there.
    """

    def __init__(self, unit_id: str, paths: Sequence[Path], sources: Sequence[bytes]) -> None:
        """
        Initialize the unit.

        Args:
            unit_id (str): Import path (or directory) identifying the package.
            paths (Sequence[Path]): Paths of the package's files.
            sources (Sequence[bytes]): Contents of the files, in the same order.
        """
        self.id: str = unit_id
        self.paths: List[Path] = list(paths)
        self.sources: List[bytes] = list(sources)

    @cached_property
    def trees(self) -> List[Tree]:
        return [parse_tree(src) for src in self.sources]

    @cached_property
    def infos(self) -> List[TypeInfo]:
        return check([tree.root_node for tree in self.trees], Importer(self.paths[0].parent))

    def files(self) -> Iterator[Tuple[Path, Node, TypeInfo]]:
        """Yield (path, root node, type info) for every file of the unit."""
        for path, tree, info in zip(self.paths, self.trees, self.infos):
            yield path, tree.root_node, info

    def __getstate__(self) -> Dict[str, object]:
        return {"id": self.id, "paths": self.paths, "sources": self.sources}

    def __setstate__(self, state: Dict[str, object]) -> None:
        self.__dict__.update(state)

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"SourceUnit({self.id!r}, {len(self.paths)} files)"


def unit_id(directory: Path) -> str:
    directory = directory.resolve()
    module = find_module(directory)
    if module is not None:
        root, path = module
        rel = directory.relative_to(root).as_posix()
        return path if rel == "." else f"{path}/{rel}"
    try:
        return directory.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return directory.as_posix()


def walk_packages(base: Path) -> List[Path]:
    """Directories under ``base`` holding Go files, as matched by a "/..." pattern."""
    if not base.is_dir():
        return []
    found: List[Path] = []
    stack = [base]
    while stack:
        directory = stack.pop()
        if package_files(directory):
            found.append(directory)
        children = sorted(
            (
                d
                for d in directory.iterdir()
                if d.is_dir()
                and d.name not in config.SKIPPED_DIRS
                and not d.name.startswith(config.SKIPPED_PREFIXES)
            ),
            reverse=True,
        )
        stack.extend(children)
    return found


def resolve_patterns(patterns: Sequence[str]) -> List[Tuple[str, List[Path]]]:
    """
    Resolve go-style patterns into (unit id, files) pairs.

    Args:
        patterns (Sequence[str]): Directories, recursive "dir/..." patterns or .go files.

    Returns:
        List of unit identifiers with the files belonging to each unit.
    """
    patterns = list(patterns) or ["."]
    go_files = [p for p in patterns if p.endswith(config.GO_SUFFIX)]
    if go_files:
        if len(go_files) != len(patterns):
            raise LoadFailure("cannot mix .go files and package patterns")
        paths = [Path(p) for p in go_files]
        missing = [str(p) for p in paths if not p.is_file()]
        if missing:
            raise LoadFailure(f"no such file: {', '.join(missing)}")
        return [(config.FILES_UNIT_ID, paths)]

    directories: List[Path] = []
    for pattern in patterns:
        if pattern == "..." or pattern.endswith("/..."):
            base = Path(pattern[: -len("...")].rstrip("/") or ".")
            directories.extend(walk_packages(base))
            continue
        directory = Path(pattern)
        if not directory.is_dir():
            raise LoadFailure(f"directory not found: {pattern}")
        if not package_files(directory):
            raise LoadFailure(f"no Go files in {pattern}")
        directories.append(directory)

    seen = set()
    units: List[Tuple[str, List[Path]]] = []
    for directory in directories:
        resolved = directory.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        units.append((unit_id(directory), package_files(directory)))
    return units


def syntax_errors(path: Path, root: Node) -> List[str]:
    """Positions of ERROR and MISSING nodes, outermost only."""
    if not root.has_error:
        return []
    errors: List[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            row, col = node.start_point
            errors.append(f"{path}:{row + 1}:{col + 1}: syntax error")
            continue
        if node.has_error:
            stack.extend(reversed(node.children))
    return errors


def package_name(root: Node) -> Optional[str]:
    for child in root.named_children:
        if child.type == "package_clause":
            return text(child.named_children[0])
    return None


def build_unit(uid: str, paths: Sequence[Path]) -> Tuple[Optional[SourceUnit], List[str]]:
    """
    Read, parse and type-check the files of one package.

    Returns:
        The unit (None if none of its files belong to the build) and its errors.
    """
    errors: List[str] = []
    context = default_context()
    kept: List[Path] = []
    sources: List[bytes] = []
    for path in paths:
        try:
            source = path.read_bytes()
        except OSError as e:
            errors.append(f"{path}: {e}")
            continue
        if not context.matches(path.name, source):
            continue
        kept.append(path.resolve())
        sources.append(source)
    if not kept:
        return None, errors

    unit = SourceUnit(uid, kept, sources)
    names: Dict[str, Path] = {}
    for path, tree in zip(unit.paths, unit.trees):
        errors.extend(syntax_errors(path, tree.root_node))
        name = package_name(tree.root_node)
        if name is not None:
            names.setdefault(name, path)
    if len(names) > 1:
        found = " and ".join(f"{n} ({p.name})" for n, p in names.items())
        errors.append(f"{uid}: found packages {found}")
    if not errors:
        for path, info in zip(unit.paths, unit.infos):
            errors.extend(f"{path}:{row}:{col}: {message}" for row, col, message in info.errors)
    return unit, errors


def load(patterns: Sequence[str]) -> List[SourceUnit]:
    """
    Load the Go packages matched by ``patterns``.

    Args:
        patterns (Sequence[str]): go-style package patterns; empty means ".".

    Returns:
        List of source units in pattern order.

    Raises:
        LoadFailure: a package could not be resolved, read, parsed or type-checked.
        EmptyTarget: the patterns matched no packages.
    """
    units: List[SourceUnit] = []
    errors: List[str] = []
    for uid, paths in resolve_patterns(patterns):
        unit, unit_errors = build_unit(uid, paths)
        errors.extend(unit_errors)
        if unit is not None:
            units.append(unit)
    if errors:
        for error in errors:
            print(error, file=sys.stderr)
        raise LoadFailure("could not load packages")
    if not units:
        raise EmptyTarget("no packages to load")
    return units
