import pytest

from errors import MalformedArchive, ScanAborted
from jar_scanner import default_jobs, find_candidate_jars, scan_jars
from mod_schema import DESCRIPTOR_FILENAME
from traversal import NotAMod
from tests.conftest import make_jar, mod_json, set_compression_method


def test_find_candidate_jars_filters_and_sorts(mods_dir):
    make_jar({}, mods_dir / "b.jar")
    make_jar({}, mods_dir / "A.JAR")
    make_jar({}, mods_dir / "c.zip")
    (mods_dir / "notes.txt").write_text("not a jar", encoding="utf-8")
    (mods_dir / "folder.jar").mkdir()
    (mods_dir / "sub").mkdir()
    make_jar({}, mods_dir / "sub" / "nested.jar")

    assert [p.name for p in find_candidate_jars(mods_dir)] == ["A.JAR", "b.jar"]


def test_scan_keeps_discovery_order(mods_dir):
    names = [f"mod{i:02d}.jar" for i in range(12)]
    for name in names:
        make_jar({DESCRIPTOR_FILENAME: mod_json(name.removesuffix(".jar"))}, mods_dir / name)

    report = scan_jars(mods_dir, jobs=4)

    assert [name for name, _ in report.results] == names
    assert [result.mod_id for _, result in report.results] == [n.removesuffix(".jar") for n in names]
    assert report.failures == []


def test_scan_isolates_broken_jar(mods_dir):
    make_jar({DESCRIPTOR_FILENAME: mod_json("a")}, mods_dir / "a.jar")
    (mods_dir / "broken.jar").write_bytes(b"definitely not a zip")
    make_jar({"readme.txt": "library"}, mods_dir / "lib.jar")

    report = scan_jars(mods_dir)

    assert [name for name, _ in report.results] == ["a.jar", "lib.jar"]
    assert report.results[1][1] == NotAMod()
    assert [f.file_name for f in report.failures] == ["broken.jar"]
    assert isinstance(report.failures[0].error, MalformedArchive)


def test_scan_fail_fast_raises(mods_dir):
    make_jar({DESCRIPTOR_FILENAME: mod_json("a")}, mods_dir / "a.jar")
    make_jar({DESCRIPTOR_FILENAME: {"id": "b"}}, mods_dir / "b.jar")
    (mods_dir / "c.jar").write_bytes(b"junk")

    with pytest.raises(ScanAborted) as excinfo:
        scan_jars(mods_dir, fail_fast=True)

    assert excinfo.value.file_name == "b.jar"


def test_scan_empty_directory(mods_dir):
    report = scan_jars(mods_dir)

    assert report.outcomes == []
    assert report.results == []


@pytest.mark.parametrize("raw, expected", [
    (None, None),
    ("", None),
    ("3", 3),
    ("zero", None),
    ("0", None),
])
def test_default_jobs_from_environment(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("MOD_JAR_INSPECTOR_JOBS", raising=False)
    else:
        monkeypatch.setenv("MOD_JAR_INSPECTOR_JOBS", raw)

    assert default_jobs() == expected


def test_scan_isolates_jar_with_unsupported_compression(mods_dir):
    make_jar({DESCRIPTOR_FILENAME: mod_json("good")}, mods_dir / "good.jar")
    odd = make_jar({DESCRIPTOR_FILENAME: mod_json("odd")})
    (mods_dir / "odd.jar").write_bytes(set_compression_method(odd, DESCRIPTOR_FILENAME, 99))

    report = scan_jars(mods_dir, jobs=2)

    assert [(name, result.mod_id) for name, result in report.results] == [("good.jar", "good")]
    assert [f.file_name for f in report.failures] == ["odd.jar"]
    assert isinstance(report.failures[0].error, MalformedArchive)
