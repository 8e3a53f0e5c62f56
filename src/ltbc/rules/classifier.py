"""Partition an experiment's rules into direct-call and network buckets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ltbc.errors import ChaosConfigurationError
from ltbc.observability.logging_config import get_chaos_logger
from ltbc.rules.state import RuleState
from ltbc.schemas import LambdaRule, RequestRule


@dataclass
class CountedLambdaRule:
    rule: LambdaRule
    state: RuleState


@dataclass
class CountedRequestRule:
    rule: RequestRule
    state: RuleState


@dataclass
class ClassifiedRules:
    direct: list[CountedLambdaRule] = field(default_factory=list)
    scoped: dict[str, CountedRequestRule] = field(default_factory=dict)
    global_rule: CountedRequestRule | None = None

    @property
    def has_network_rules(self) -> bool:
        return bool(self.scoped) or self.global_rule is not None

    def lookup(self, *keys: str | None) -> CountedRequestRule | None:
        """First scoped rule matching any of *keys*, tried in order."""
        for key in keys:
            if key is not None and key in self.scoped:
                return self.scoped[key]
        return None


def classify_rules(
    rules: Iterable[LambdaRule | RequestRule] | None,
    *,
    strict: bool = False,
    logger: Any = None,
) -> ClassifiedRules:
    """Build the three rule buckets, each rule with a fresh counter.

    Duplicate scope keys keep the last rule; extra global rules are ignored
    in favour of the first.  With ``strict=True`` both situations, and more
    than one result-producing lambda rule, raise ChaosConfigurationError.
    """
    log = get_chaos_logger(logger)
    classified = ClassifiedRules()
    extra_globals = 0

    for rule in rules or []:
        if isinstance(rule, LambdaRule):
            classified.direct.append(CountedLambdaRule(rule=rule, state=RuleState(every=rule.every)))
        elif rule.is_global:
            if classified.global_rule is None:
                classified.global_rule = CountedRequestRule(rule=rule, state=RuleState(every=rule.every))
            else:
                extra_globals += 1
        else:
            key = rule.scope_key
            if key in classified.scoped:
                if strict:
                    raise ChaosConfigurationError(
                        f"More than one http rule for scope {key!r}", details={"scope": key}
                    )
                log.warning("chaos_duplicate_scope_rule", scope=key)
            classified.scoped[key] = CountedRequestRule(rule=rule, state=RuleState(every=rule.every))

    if extra_globals:
        if strict:
            raise ChaosConfigurationError(
                "Only one http rule without host or href is allowed",
                details={"count": extra_globals + 1},
            )
        log.warning("chaos_extra_global_rules_ignored", ignored=extra_globals)

    producers = sum(1 for counted in classified.direct if counted.rule.result is not None)
    if producers > 1:
        if strict:
            raise ChaosConfigurationError(
                "Only one lambda rule may produce a result", details={"count": producers}
            )
        log.warning("chaos_multiple_result_rules", count=producers)

    log.debug(
        "chaos_rules_classified",
        direct=len(classified.direct),
        scoped=sorted(classified.scoped),
        has_global=classified.global_rule is not None,
    )
    return classified
