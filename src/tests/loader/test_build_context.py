import pytest

from src.main.loader.build_context import BuildContext, build_files, header

LINUX = BuildContext("linux", "amd64", tags=frozenset({"integration"}))


@pytest.mark.parametrize(
    "name, expected",
    [
        pytest.param("a.go", True, id="plain"),
        pytest.param("a_linux.go", True, id="host-os"),
        pytest.param("a_windows.go", False, id="other-os"),
        pytest.param("a_arm64.go", False, id="other-arch"),
        pytest.param("a_linux_amd64.go", True, id="host-os-arch"),
        pytest.param("a_linux_386.go", False, id="host-os-other-arch"),
        pytest.param("a_windows_test.go", False, id="test-suffix"),
        pytest.param("linux.go", True, id="no-underscore"),
        pytest.param("zz_generated.go", True, id="unknown-suffix"),
    ],
)
def test_good_file_name(name, expected):
    assert LINUX.good_file_name(name) is expected


@pytest.mark.parametrize(
    "expr, expected",
    [
        pytest.param("linux", True, id="goos"),
        pytest.param("plan9", False, id="other-goos"),
        pytest.param("linux && amd64", True, id="and"),
        pytest.param("windows || darwin", False, id="or"),
        pytest.param("!windows", True, id="not"),
        pytest.param("(linux || darwin) && !cgo", False, id="cgo-enabled"),
        pytest.param("unix", True, id="unix"),
        pytest.param("gc && go1.21", True, id="release"),
        pytest.param("go1.99", False, id="future-release"),
        pytest.param("integration", True, id="custom-tag"),
        pytest.param("ignore", False, id="ignore"),
        pytest.param("linux &&", False, id="malformed"),
    ],
)
def test_evaluate(expr, expected):
    assert LINUX.evaluate(expr) is expected


def test_implied_os():
    assert BuildContext("android", "arm64").evaluate("linux")
    assert not BuildContext("linux", "amd64").evaluate("android")


@pytest.mark.parametrize(
    "source, expected",
    [
        pytest.param(b"//go:build ignore\n\npackage p\n", False, id="go-build"),
        pytest.param(b"// +build ignore\n\npackage p\n", False, id="plus-build"),
        pytest.param(b"// +build windows linux\n\npackage p\n", True, id="plus-build-alternatives"),
        pytest.param(b"// +build linux,!amd64\n\npackage p\n", False, id="plus-build-terms"),
        pytest.param(b"//go:build linux\n// +build windows\n\npackage p\n", True, id="go-build-wins"),
        pytest.param(b"package p\n\n//go:build ignore\n", True, id="after-package"),
        pytest.param(b"/* license */\n//go:build plan9\n\npackage p\n", False, id="after-block-comment"),
    ],
)
def test_matches(source, expected):
    assert LINUX.matches("a.go", source) is expected


def test_header_reads_the_package_clause():
    comments, name = header(b"// Package p does things.\npackage p // import \"x\"\n")
    assert comments == ["// Package p does things."]
    assert name == "p"


def test_build_files_skip_excluded_and_underscore_files(tmp_path):
    for name, source in {
        "a.go": "package p\n",
        "a_windows.go": "package p\n",
        "_scratch.go": "package p\n",
        "a_test.go": "package p\n",
        "b.go": "//go:build plan9\n\npackage p\n",
    }.items():
        (tmp_path / name).write_text(source, encoding="utf-8")
    assert [p.name for p, _ in build_files(tmp_path, LINUX)] == ["a.go"]
