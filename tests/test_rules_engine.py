"""Test generic rule composition."""
from patterns.rules_engine import evaluate_rules, evaluate_until_failure, failed, passed


def test_evaluate_rules_collects_failures():
    result = evaluate_rules(passed("a"), failed("b", "nope"), failed("c", "also nope"))
    assert not result.all_passed
    assert [r.rule_name for r in result.failed] == ["b", "c"]
    assert result.first_failure.rule_name == "b"


def test_evaluate_rules_all_pass():
    result = evaluate_rules(passed("a"), passed("b"))
    assert result.all_passed
    assert result.first_failure is None


def test_until_failure_stops_early():
    calls = []

    def rule(name, ok):
        def check(value):
            calls.append(name)
            return passed(name) if ok else failed(name, f"{name} failed", value=value)
        return check

    result = evaluate_until_failure(
        [rule("first", True), rule("second", False), rule("third", False)],
        42,
    )
    assert calls == ["first", "second"]
    assert not result.all_passed
    assert result.first_failure.rule_name == "second"
    assert result.first_failure.details == {"value": 42}
    assert len(result.results) == 2


def test_until_failure_runs_everything_on_success():
    result = evaluate_until_failure([lambda: passed("x"), lambda: passed("y")])
    assert result.all_passed
    assert [r.rule_name for r in result.results] == ["x", "y"]
