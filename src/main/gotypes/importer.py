"""
Resolution of imported packages whose source is on disk.

An import path is looked up inside the importing module, in the module's
vendor directory and under GOROOT/src. A package found there is parsed and
its package-level declarations are checked without function bodies; its
exported names become visible through the importing file's package name.
Packages that cannot be found stay unresolved.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from src.main.gotypes.checker import Checker, Obj, Scope
from src.main.gotypes.types import Basic, Kind
from src.main.loader.build_context import build_files, find_module, goroot, header
from src.main.utils.go_parser import parse_tree

UNSAFE: Dict[str, Obj] = {
    "Pointer": Obj("type", Basic(Kind.UNSAFE_POINTER)),
    **{name: Obj("builtin", None) for name in (
        "Sizeof", "Alignof", "Offsetof", "Add", "Slice", "SliceData", "String", "StringData",
    )},
}

# Package scopes by directory; None while a package is being checked or when it has no files
_packages: Dict[Path, Optional[Scope]] = {}


def exported(name: str) -> bool:
    return name[:1].isupper()


def load_package(directory: Path) -> Optional[Scope]:
    """Check the package-level declarations of the package in ``directory``."""
    if directory in _packages:
        return _packages[directory]
    _packages[directory] = None
    files = build_files(directory)
    names = [header(source)[1] for _, source in files]
    name = _common_name(names)
    roots = [parse_tree(source).root_node for (_, source), n in zip(files, names) if n == name]
    if not roots:
        return None
    checker = Checker(roots, Importer(directory), bodies=False, report=False)
    checker.check()
    _packages[directory] = checker.package
    return checker.package


@lru_cache(maxsize=None)
def package_name(directory: Path) -> Optional[str]:
    """Package clause shared by the build files of ``directory``."""
    return _common_name([header(source)[1] for _, source in build_files(directory)])


@lru_cache(maxsize=None)
def has_build_files(directory: Path) -> bool:
    return directory.is_dir() and bool(build_files(directory))


def _common_name(names: Sequence[Optional[str]]) -> Optional[str]:
    # generator files of another package may share the directory
    counts: Dict[str, int] = {}
    for name in names:
        if name is not None:
            counts[name] = counts.get(name, 0) + 1
    if not counts:
        return None
    return max(counts, key=counts.get)


class Importer:
    """
    Finds and checks the packages imported by the files of one directory.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory.resolve()
        self.module = find_module(self.directory)

    def candidates(self, path: str) -> List[Path]:
        out: List[Path] = []
        if self.module is not None:
            root, module_path = self.module
            if path == module_path or path.startswith(module_path + "/"):
                out.append(root / path[len(module_path):].lstrip("/"))
            out.append(root / "vendor" / path)
        src = goroot()
        if src is not None:
            out.append(src / "src" / path)
            out.append(src / "src" / "vendor" / path)
        return out

    def find(self, path: str) -> Optional[Path]:
        for candidate in self.candidates(path):
            if has_build_files(candidate):
                return candidate.resolve()
        return None

    def name(self, path: str) -> Optional[str]:
        """Declared name of the imported package, if its source is found."""
        if path == "unsafe":
            return "unsafe"
        directory = self.find(path)
        return package_name(directory) if directory is not None else None

    def member(self, path: str, name: str) -> Optional[Obj]:
        if path == "unsafe":
            return UNSAFE.get(name)
        if not exported(name):
            return None
        directory = self.find(path)
        if directory is None:
            return None
        scope = load_package(directory)
        if scope is None:
            return None
        return scope.names.get(name)
