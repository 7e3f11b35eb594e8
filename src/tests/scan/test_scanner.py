import pickle

import pytest

from src.main.scan import scanner
from src.main.scan.scanner import HitRecord, ScanResult, find, scan_all

EXAMPLE = """package p

func f(b bool) int { return 0 }

func g(cond bool) int {
	x := 0
	if cond {
		x = 1
	} else {
		x = 2
	}
	return x + f(cond)
}
"""


def _scan(unit):
    hits = []
    result = find(unit, hits.append)
    return result, hits


def test_counts_both_forms(go_package):
    unit = go_package(EXAMPLE)
    result, hits = _scan(unit)
    assert (result.implicit, result.explicit) == (1, 1)
    assert result.total == 2
    assert result.unit == unit.id
    assert [(h.line, h.column) for h in hits] == [(7, 2), (12, 13)]
    assert all(h.path.name == "a.go" for h in hits)


def test_hit_record_format(tmp_path):
    assert str(HitRecord(tmp_path / "a.go", 3, 9)) == f"{tmp_path / 'a.go'}:3:9"


def test_method_calls_are_skipped_but_method_values_count(go_package):
    unit = go_package("""package p

type T struct{}

func (T) conv(b bool) int { return 0 }

func use(t T, c bool) {
	_ = t.conv(c)
	h := t.conv
	_ = h(c)
}
""")
    result, _ = _scan(unit)
    assert (result.implicit, result.explicit) == (0, 1)


def test_map_reads_need_numeric_values(go_package):
    unit = go_package("""package p

var scores = map[bool]float64{true: 1, false: 0}
var labels = map[bool]string{true: "yes", false: "no"}

func use(c bool) (float64, string) {
	return scores[c], labels[c]
}
""")
    result, _ = _scan(unit)
    assert (result.implicit, result.explicit) == (0, 1)


def test_else_if_links_are_judged_separately(go_package):
    unit = go_package("""package p

func use(a, b bool) int {
	x := 0
	if a {
		x = 1
	} else if b {
		x = 2
	} else {
		x = 3
	}
	return x
}
""")
    result, hits = _scan(unit)
    assert (result.implicit, result.explicit) == (1, 0)
    assert [(h.line, h.column) for h in hits] == [(7, 9)]


def test_if_without_else_is_not_counted(go_package):
    unit = go_package("""package p

func use(a bool) int {
	x := 0
	if a {
		x = 1
	}
	return x
}
""")
    result, hits = _scan(unit)
    assert result == ScanResult(unit.id, 0, 0)
    assert hits == []


def test_matched_if_still_scans_its_condition(go_package):
    unit = go_package("""package p

func f(b bool) int { return 0 }

func use(a bool) int {
	x := 0
	if f(a) > 0 {
		x = 1
	} else {
		x = 0
	}
	return x
}
""")
    result, _ = _scan(unit)
    assert (result.implicit, result.explicit) == (1, 1)


def test_bodies_of_unmatched_ifs_are_scanned(go_package):
    unit = go_package("""package p

func f(b bool) int { return 0 }

func use(a bool) int {
	if a {
		return f(a)
	}
	return 0
}
""")
    result, _ = _scan(unit)
    assert (result.implicit, result.explicit) == (0, 1)


def test_scanning_twice_gives_the_same_result(go_package):
    unit = go_package(EXAMPLE)
    first, first_hits = _scan(unit)
    second, second_hits = _scan(unit)
    assert first == second
    assert first_hits == second_hits


def test_unit_survives_pickling(go_package):
    unit = go_package(EXAMPLE)
    restored = pickle.loads(pickle.dumps(unit))
    assert restored.id == unit.id
    assert _scan(restored)[0] == _scan(unit)[0]


@pytest.fixture
def two_units(go_package):
    return [go_package(EXAMPLE, "one"), go_package("package p\n", "two")]


def test_scan_all_sequential(two_units):
    hits = []
    results = scan_all(two_units, workers=1, emit=hits.append)
    assert [(r.implicit, r.explicit) for r in results] == [(1, 1), (0, 0)]
    assert len(hits) == 2


def test_scan_all_parallel_replays_hits_in_unit_order(two_units, monkeypatch):
    calls = {}

    def fake_process_map(fn, items, **kwargs):
        calls.update(kwargs)
        return [fn(pickle.loads(pickle.dumps(item))) for item in items]

    monkeypatch.setattr(scanner, "process_map", fake_process_map)
    hits = []
    results = scan_all(two_units, workers=4, emit=hits.append)
    assert calls["max_workers"] == 4
    assert [(r.implicit, r.explicit) for r in results] == [(1, 1), (0, 0)]
    assert [(h.line, h.column) for h in hits] == [(7, 2), (12, 13)]
