from __future__ import annotations

import json

from todoscan_cli.models import FileReport, ScanReport, TaggedItem, from_raw, load_report, dump_report

from conftest import raw_file, raw_payload


def test_build_recomputes_total_and_drops_empty_files():
    report = ScanReport.build(
        [
            FileReport("a.py", (TaggedItem("TODO", "x", 1), TaggedItem("BUG", "y", 4))),
            FileReport("empty.py", ()),
            FileReport("b.py", (TaggedItem("TODO", "z", 2),)),
        ],
        with_counts=True,
    )
    assert [f.path for f in report.files] == ["a.py", "b.py"]
    assert report.summary.total == 3
    assert report.summary.by_tag == {"TODO": 2, "BUG": 1}
    assert report.summary.files_with_todos == 2


def test_from_raw_ignores_reported_total():
    raw = raw_payload(raw_file("a.py", ("TODO", 1, "one")))
    raw["summary"]["total"] = 99
    assert from_raw(raw).summary.total == 1


def test_from_raw_accepts_field_aliases():
    raw = {"files": [{"file": "x.go", "items": [{"type": "FIXME", "message": " fix me ", "line": "7", "col": 5}]}]}
    report = from_raw(raw)
    (path, item), = list(report.items())
    assert path == "x.go"
    assert item == TaggedItem(tag="FIXME", text="fix me", line=7, column=5)


def test_from_raw_masks_garbage():
    assert from_raw("not json").summary.total == 0
    assert from_raw([1, 2]).files == ()
    assert from_raw({"files": "nope"}).files == ()
    report = from_raw({"files": [None, {"path": "a"}, {"path": "b", "todos": [{"tag": "TODO"}]}]})
    assert report.files == ()


def test_serialized_shape():
    report = from_raw(raw_payload(raw_file("a.py", ("TODO", 3, "later"))))
    data = report.to_dict()
    assert list(data) == ["files", "summary"]
    assert data["files"][0]["path"] == "a.py"
    assert set(data["files"][0]["todos"][0]) == {"tag", "text", "line", "column", "line_content", "priority"}
    assert data["summary"]["total"] == 1


def test_empty_report_shape():
    assert ScanReport.empty().to_dict() == {"files": [], "summary": {"total": 0}}


def test_dump_and_load(tmp_path):
    path = str(tmp_path / "todos.json")
    report = from_raw(raw_payload(raw_file("a.py", ("TODO", 3, "later"), ("BUG", 9, "broken"))))
    dump_report(report, path)
    with open(path) as f:
        assert json.load(f)["summary"]["total"] == 2
    assert load_report(path) == report


def test_load_missing_or_bad_file(tmp_path):
    assert load_report(str(tmp_path / "missing.json")) == ScanReport.empty()
    bad = tmp_path / "bad.json"
    bad.write_text("{oops")
    assert load_report(str(bad)) == ScanReport.empty()
