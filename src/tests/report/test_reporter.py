import pandas as pd

from src.main.report.reporter import report_lines, save_csv, total, unit_line
from src.main.scan.scanner import ScanResult


def test_unit_line():
    assert unit_line(ScanResult("example.com/m", 2, 3)) == "example.com/m: 2 implicit, 3 explicit; all 5"


def test_single_unit_has_no_total():
    assert report_lines([ScanResult("a", 1, 0)]) == ["a: 1 implicit, 0 explicit; all 1"]


def test_single_unit_without_hits_prints_nothing():
    assert report_lines([ScanResult("a", 0, 0)]) == []


def test_units_without_hits_are_left_out_of_the_listing():
    lines = report_lines([
        ScanResult("a", 1, 2),
        ScanResult("b", 0, 0),
        ScanResult("c", 0, 4),
    ])
    assert lines == [
        "a: 1 implicit, 2 explicit; all 3",
        "c: 0 implicit, 4 explicit; all 4",
        "",
        "TOTAL: 1 implicit, 6 explicit; all 7",
    ]


def test_total_is_printed_for_several_units_without_hits():
    lines = report_lines([ScanResult("a", 0, 0), ScanResult("b", 0, 0)])
    assert lines == ["", "TOTAL: 0 implicit, 0 explicit; all 0"]


def test_total():
    assert total([ScanResult("a", 1, 2), ScanResult("b", 3, 4)]) == ScanResult("TOTAL", 4, 6)


def test_save_csv(tmp_path, capsys):
    out = tmp_path / "counts.csv"
    save_csv([ScanResult("a", 1, 2), ScanResult("b", 0, 0)], out)
    df = pd.read_csv(out)
    assert list(df.columns) == ["Unit", "Implicit", "Explicit", "All"]
    assert df.to_dict("records") == [{"Unit": "a", "Implicit": 1, "Explicit": 2, "All": 3}]
    assert "Counts saved to" in capsys.readouterr().out
