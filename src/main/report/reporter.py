from pathlib import Path
from typing import List, Sequence

import pandas as pd

from src.main.scan.scanner import ScanResult


def unit_line(result: ScanResult) -> str:
    return f"{result.unit}: {result.implicit} implicit, {result.explicit} explicit; all {result.total}"


def total(results: Sequence[ScanResult]) -> ScanResult:
    return ScanResult(
        "TOTAL",
        sum(r.implicit for r in results),
        sum(r.explicit for r in results),
    )


def report_lines(results: Sequence[ScanResult]) -> List[str]:
    """
    Render per-unit lines for units with hits, then the total when more than one unit was scanned.

    Args:
        results (Sequence[ScanResult]): Results of every scanned unit, in load order.

    Returns:
        List of output lines.
    """
    reported = [r for r in results if r.total > 0]
    lines = [unit_line(r) for r in reported]
    if len(results) > 1:
        lines.append("")
        lines.append(unit_line(total(reported)))
    return lines


def save_csv(results: Sequence[ScanResult], output_csv: Path) -> None:
    """
    Save the per-unit counts of units with hits as CSV.

    Args:
        results (Sequence[ScanResult]): Results of every scanned unit.
        output_csv (Path): Path of the CSV file.
    """
    rows = [
        {"Unit": r.unit, "Implicit": r.implicit, "Explicit": r.explicit, "All": r.total}
        for r in results
        if r.total > 0
    ]
    df = pd.DataFrame(rows, columns=["Unit", "Implicit", "Explicit", "All"])
    df.to_csv(output_csv, index=False)
    print(f"Counts saved to {output_csv} (rows: {len(df)})")
