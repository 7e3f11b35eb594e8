"""
Build constraints for Go source files.

A file belongs to a package build when its name carries no _GOOS/_GOARCH
suffix for another platform and its //go:build expression (or, in older
files, its // +build lines) holds for the target platform. Also finds the
enclosing module and GOROOT that imports are resolved against.
"""

import re
import shutil
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, List, NamedTuple, Optional, Tuple

from lark import Lark, Tree
from lark.exceptions import LarkError

from src.main import config

KNOWN_OS = frozenset({
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios", "js",
    "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris", "wasip1", "windows", "zos",
})
UNIX_OS = frozenset({
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
    "linux", "netbsd", "openbsd", "solaris",
})
KNOWN_ARCH = frozenset({
    "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be", "loong64", "mips",
    "mipsle", "mips64", "mips64le", "mips64p32", "mips64p32le", "ppc", "ppc64", "ppc64le",
    "riscv", "riscv64", "s390", "s390x", "sparc", "sparc64", "wasm",
})
# GOOS values that also satisfy another GOOS tag
IMPLIED_OS = {"android": "linux", "illumos": "solaris", "ios": "darwin"}

GO_BUILD = re.compile(r"^//go:build(\s|$)")
PLUS_BUILD = re.compile(r"^//\s*\+build(\s|$)")
RELEASE_TAG = re.compile(r"^go1\.(\d+)$")

_GRAMMAR = r"""
?start: or_expr
?or_expr: and_expr
        | or_expr "||" and_expr -> any_of
?and_expr: not_expr
         | and_expr "&&" not_expr -> all_of
?not_expr: "!" not_expr -> negate
         | atom
?atom: TAG -> tag
     | "(" or_expr ")"
TAG: /[A-Za-z0-9_.]+/
%import common.WS_INLINE
%ignore WS_INLINE
"""


@lru_cache
def _get_parser() -> Lark:
    return Lark(_GRAMMAR, parser="lalr", start="start")


@lru_cache(maxsize=1024)
def parse_expression(expr: str) -> Tree:
    return _get_parser().parse(expr.strip())


class BuildContext(NamedTuple):
    """Target platform and tags a package is built for."""

    goos: str
    goarch: str
    cgo: bool = True
    tags: FrozenSet[str] = frozenset()
    go_minor: int = 24

    def satisfied(self, tag: str) -> bool:
        if tag in (self.goos, self.goarch, "gc") or tag in self.tags:
            return True
        if IMPLIED_OS.get(self.goos) == tag:
            return True
        if tag == "unix":
            return self.goos in UNIX_OS
        if tag == "cgo":
            return self.cgo
        release = RELEASE_TAG.match(tag)
        return release is not None and int(release.group(1)) <= self.go_minor

    def good_file_name(self, name: str) -> bool:
        """Apply the *_GOOS, *_GOARCH and *_GOOS_GOARCH file name rule."""
        stem = name.split(".", 1)[0]
        if stem.endswith("_test"):
            stem = stem[: -len("_test")]
        i = stem.find("_")
        if i < 0:
            return True
        parts = stem[i:].split("_")
        n = len(parts)
        if n >= 2 and parts[n - 2] in KNOWN_OS and parts[n - 1] in KNOWN_ARCH:
            return self.satisfied(parts[n - 2]) and self.satisfied(parts[n - 1])
        if parts[n - 1] in KNOWN_OS or parts[n - 1] in KNOWN_ARCH:
            return self.satisfied(parts[n - 1])
        return True

    def evaluate(self, expr: str) -> bool:
        """Evaluate a //go:build expression; malformed ones never hold."""
        try:
            tree = parse_expression(expr)
        except LarkError:
            return False
        return _evaluate(tree, self)

    def plus_build(self, line: str) -> bool:
        # space separated alternatives of comma separated terms
        for alternative in line.split():
            terms = alternative.split(",")
            if all(
                (not self.satisfied(t[1:])) if t.startswith("!") else self.satisfied(t)
                for t in terms
            ):
                return True
        return False

    def matches(self, name: str, source: bytes) -> bool:
        """True if the file belongs to the build."""
        if not self.good_file_name(name):
            return False
        comments, _ = header(source)
        for line in comments:
            if GO_BUILD.match(line):
                return self.evaluate(line[len("//go:build"):])
        plus = [PLUS_BUILD.sub("", line) for line in comments if PLUS_BUILD.match(line)]
        return all(self.plus_build(line) for line in plus)


def _evaluate(tree, context: BuildContext) -> bool:
    kind = tree.data
    if kind == "tag":
        return context.satisfied(str(tree.children[0]))
    if kind == "negate":
        return not _evaluate(tree.children[0], context)
    if kind == "all_of":
        return all(_evaluate(c, context) for c in tree.children)
    if kind == "any_of":
        return any(_evaluate(c, context) for c in tree.children)
    raise ValueError(f"unexpected build expression node: {kind}")


def default_context() -> BuildContext:
    return BuildContext(
        config.GOOS,
        config.GOARCH,
        config.CGO_ENABLED,
        frozenset(config.BUILD_TAGS),
        config.GO_MINOR,
    )


def header(source: bytes) -> Tuple[List[str], Optional[str]]:
    """Line comments before the package clause, and the package name."""
    comments: List[str] = []
    in_block = False
    for raw in source.decode("utf8", errors="ignore").splitlines():
        line = raw.strip()
        if in_block:
            if "*/" in line:
                in_block = False
            continue
        if not line or line.startswith("//"):
            comments.append(line)
            continue
        if line.startswith("/*"):
            in_block = "*/" not in line[2:]
            continue
        if line.startswith("package"):
            parts = line.replace(";", " ").split()
            return comments, parts[1] if len(parts) > 1 else None
        break
    return comments, None


def package_files(directory: Path) -> List[Path]:
    """Non-test Go files of a directory, sorted by name."""
    return sorted(
        p
        for p in directory.glob(f"*{config.GO_SUFFIX}")
        if p.is_file()
        and not p.name.endswith(config.TEST_SUFFIX)
        and not p.name.startswith(config.SKIPPED_PREFIXES)
    )


def build_files(directory: Path, context: Optional[BuildContext] = None) -> List[Tuple[Path, bytes]]:
    """(path, source) of the files of a directory that belong to the build."""
    context = context or default_context()
    out = []
    for path in package_files(directory):
        try:
            source = path.read_bytes()
        except OSError:
            continue
        if context.matches(path.name, source):
            out.append((path, source))
    return out


def find_module(directory: Path) -> Optional[Tuple[Path, str]]:
    """Find the enclosing go.mod and return (module root, module path)."""
    for parent in (directory, *directory.parents):
        go_mod = parent / config.GO_MOD
        if go_mod.is_file():
            for line in go_mod.read_text(encoding="utf-8", errors="ignore").splitlines():
                parts = line.split()
                if len(parts) >= 2 and parts[0] == "module":
                    return parent, parts[1].strip('"')
            return None
    return None


@lru_cache
def _go_env_goroot() -> Optional[Path]:
    go = shutil.which("go")
    if go is None:
        return None
    try:
        res = subprocess.run(
            [go, "env", "GOROOT"],
            capture_output=True,
            text=True,
            timeout=config.GO_ENV_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if res.returncode != 0 or not res.stdout.strip():
        return None
    return Path(res.stdout.strip())


def goroot() -> Optional[Path]:
    return config.GOROOT or _go_env_goroot()
