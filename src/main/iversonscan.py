"""
Counts Iverson-bracket idioms in Go packages.

Usage: python -m src.main.iversonscan [packages]

Implicit brackets are if/else statements whose branches only assign a
number; explicit ones are calls to a func(~bool) ~number or reads from a
map[~bool]~number. Every hit is printed to stderr as file:line:column and
the per-package counts to stdout.
"""

import sys
from pathlib import Path
from typing import List, Optional, Sequence

from src.main import config
from src.main.loader.program_loader import LoadError, SourceUnit, load
from src.main.report.reporter import report_lines, save_csv
from src.main.scan.scanner import ScanResult, scan_all

RECURSION_LIMIT = 10000


def run(
    patterns: Sequence[str],
    output_csv: Optional[Path] = config.REPORT_CSV,
    workers: int = config.WORKERS,
) -> List[ScanResult]:
    """
    Load the packages, scan them and print the report.

    Args:
        patterns (Sequence[str]): go-style package patterns.
        output_csv (Optional[Path]): Where to save per-package counts, if anywhere.
        workers (int): Worker processes used for scanning.

    Returns:
        Results of every scanned package.
    """
    return scan_and_report(load(patterns), output_csv, workers)


def scan_and_report(
    units: Sequence[SourceUnit],
    output_csv: Optional[Path] = config.REPORT_CSV,
    workers: int = config.WORKERS,
) -> List[ScanResult]:
    results = scan_all(units, workers=workers)
    for line in report_lines(results):
        print(line)
    if output_csv is not None:
        save_csv(results, output_csv)
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point for the scan. An interrupt while loading exits with 130.
    """
    patterns = list(sys.argv[1:] if argv is None else argv)
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    try:
        units = load(patterns)
    except LoadError as e:
        print(e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130
    scan_and_report(units, config.REPORT_CSV, config.WORKERS)
    return 0


if __name__ == "__main__":
    sys.exit(main())
