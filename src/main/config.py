"""
Configuration settings for loading and scanning Go packages.
"""

import os
import platform
from pathlib import Path
from typing import Dict, Optional, Tuple

# Source files
GO_SUFFIX: str = ".go"
TEST_SUFFIX: str = "_test.go"
GO_MOD: str = "go.mod"

# Directories the recursive "/..." pattern never enters
SKIPPED_DIRS: Tuple[str, ...] = ("vendor", "testdata")
SKIPPED_PREFIXES: Tuple[str, ...] = (".", "_")

# Unit identifier for packages given as a list of files
FILES_UNIT_ID: str = "command-line-arguments"

# Target platform for build constraints; defaults to the host
HOST_ARCH: Dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "loongarch64": "loong64",
    "mips64": "mips64",
}
GOOS: str = os.environ.get("GOOS") or platform.system().lower()
GOARCH: str = os.environ.get("GOARCH") or HOST_ARCH.get(platform.machine().lower(), platform.machine().lower())
CGO_ENABLED: bool = os.environ.get("CGO_ENABLED", "1") == "1"
BUILD_TAGS: Tuple[str, ...] = tuple(t for t in os.environ.get("IVERSON_TAGS", "").split(",") if t)
# Release tags go1.1 .. go1.GO_MINOR are satisfied
GO_MINOR: int = int(os.environ.get("IVERSON_GO_MINOR", "24"))

# Standard library sources; "go env GOROOT" is asked when unset
GOROOT: Optional[Path] = Path(os.environ["GOROOT"]) if os.environ.get("GOROOT") else None
GO_ENV_TIMEOUT: int = 30

# Scanning
WORKERS: int = int(os.environ.get("IVERSON_WORKERS", "1"))
CHUNKSIZE: int = 1

# Reporting
REPORT_CSV: Optional[Path] = (
    Path(os.environ["IVERSON_CSV"]) if os.environ.get("IVERSON_CSV") else None
)
