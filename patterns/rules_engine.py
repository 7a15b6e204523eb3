"""Pure-function rules engine pattern.

Rules are stateless functions: (entity, context) -> RuleResult.
No database, no side effects. This makes them:
- Trivially testable (pure input/output)
- Composable (chain multiple rules)
- Auditable (deterministic, explainable)

Two composition styles are supported: aggregate every result
(``evaluate_rules``) or run an ordered chain that stops at the first
failure (``evaluate_until_failure``). The lending vertical uses the
latter, since which rule fired first is part of its contract.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class RuleResult:
    """Outcome of a single rule evaluation."""

    passed: bool
    rule_name: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleSetResult:
    """Aggregate outcome of multiple rules."""

    all_passed: bool
    results: list[RuleResult]
    failed: list[RuleResult] = field(default_factory=list)

    def __post_init__(self):
        self.failed = [r for r in self.results if not r.passed]
        self.all_passed = len(self.failed) == 0

    @property
    def first_failure(self) -> RuleResult | None:
        """The earliest failing result, or None if everything passed."""
        return self.failed[0] if self.failed else None


Rule = Callable[..., RuleResult]


def passed(rule_name: str, message: str = "ok", **details: Any) -> RuleResult:
    """Shorthand for a passing result."""
    return RuleResult(passed=True, rule_name=rule_name, message=message, details=details)


def failed(rule_name: str, message: str, **details: Any) -> RuleResult:
    """Shorthand for a failing result."""
    return RuleResult(passed=False, rule_name=rule_name, message=message, details=details)


# ---------------------------------------------------------------------------
# Rule composition
# ---------------------------------------------------------------------------

def evaluate_rules(*rules: RuleResult) -> RuleSetResult:
    """Compose multiple rule results into a single aggregate.

    Example::

        result = evaluate_rules(
            check_request_size(request, thresholds),
            check_topic_diversity(request),
        )
        if result.all_passed:
            issue(request)
    """
    return RuleSetResult(
        all_passed=all(r.passed for r in rules),
        results=list(rules),
    )


def evaluate_until_failure(rules: Iterable[Rule], *args: Any, **kwargs: Any) -> RuleSetResult:
    """Run rules in order, stopping at the first one that fails.

    Every rule receives the same arguments. The returned aggregate holds
    the results of the rules that actually ran, so the last entry is the
    failing one when ``all_passed`` is False.

    Example::

        outcome = evaluate_until_failure(
            (check_daily_cap, check_period_cap),
            request, history, thresholds, now,
        )
        if not outcome.all_passed:
            print(outcome.first_failure.rule_name)
    """
    results: list[RuleResult] = []
    for rule in rules:
        result = rule(*args, **kwargs)
        results.append(result)
        if not result.passed:
            break
    return evaluate_rules(*results)
