from __future__ import annotations

from todoscan_cli.policy import DEFAULT_FAIL_TAGS, FailRules, evaluate, outputs, render_annotations

from conftest import make_report


def _many(n):
    return make_report([(f"f{i % 7}.py", "TODO", i + 1) for i in range(n)])


def test_annotation_format():
    lines = render_annotations(make_report([("src/x.go", "FIXME", 20)], text="handle errors"))
    assert lines == ["::warning file=src/x.go,line=20::FIXME: handle errors"]


def test_annotation_cap_is_global():
    report = _many(100)
    assert report.summary.total == 100
    assert len(render_annotations(report, 3)) == 3
    assert len(render_annotations(report)) == 50


def test_annotations_follow_report_order():
    report = make_report([("b", "TODO", 9), ("b", "BUG", 12), ("a", "TODO", 1)])
    lines = render_annotations(report, 2, severity="notice")
    assert lines == ["::notice file=b,line=9::TODO: msg", "::notice file=b,line=12::BUG: msg"]


def test_annotation_text_is_single_line():
    report = make_report([("a", "TODO", 1)], text="two\nlines")
    assert render_annotations(report)[0].endswith("TODO: two lines")


def test_no_rules_passes():
    verdict = evaluate(_many(10), FailRules())
    assert verdict.passed and verdict.reason is None


def test_max_allowed_names_threshold_and_count():
    verdict = evaluate(_many(5), FailRules(max_allowed=3))
    assert not verdict.passed
    assert "5" in verdict.reason and "3" in verdict.reason


def test_max_allowed_is_inclusive():
    assert evaluate(_many(3), FailRules(max_allowed=3)).passed


def test_fail_on_any_tag():
    assert not evaluate(_many(1), FailRules(fail_on_any_tag=True)).passed
    assert evaluate(make_report([]), FailRules(fail_on_any_tag=True)).passed


def test_fail_on_tags_exact_match():
    report = make_report([("a", "TODO", 1), ("a", "Fixme", 2)])
    assert evaluate(report, FailRules(fail_on_tags=DEFAULT_FAIL_TAGS)).passed
    report = make_report([("a", "TODO", 1), ("a", "BUG", 2)])
    verdict = evaluate(report, FailRules(fail_on_tags=DEFAULT_FAIL_TAGS))
    assert not verdict.passed
    assert verdict.reason.startswith("Found 1 BUG/FIXME")


def test_first_tripped_rule_wins():
    report = make_report([("a", "BUG", 1), ("a", "BUG", 2)])
    rules = FailRules(fail_on_any_tag=True, fail_on_tags=DEFAULT_FAIL_TAGS, max_allowed=0)
    assert evaluate(report, rules).reason == "Found 2 tag(s). Failing as requested."
    rules = FailRules(fail_on_tags=DEFAULT_FAIL_TAGS, max_allowed=0)
    assert "BUG/FIXME" in evaluate(report, rules).reason


def test_outputs():
    out = outputs(make_report([("a", "TODO", 1), ("b", "TODO", 2)]))
    assert out["total"] == "2"
    assert out["files_count"] == "2"
    assert out["has_todos"] == "true"
    assert '"total": 2' in out["json"]
    assert outputs(make_report([]))["has_todos"] == "false"


def test_annotation_properties_are_escaped():
    report = make_report([("dir,with:odd%name.py", "TODO", 4)], text="100% done")
    assert render_annotations(report) == ["::warning file=dir%2Cwith%3Aodd%25name.py,line=4::TODO: 100%25 done"]
