"""Heuristic inference of why a provider run was started.

Providers encode the trigger origin inconsistently: some report a typed
reason field, others only free-text cause descriptions. Each provider
therefore declares its own ``TriggerClassifier``: an optional explicit field
that is trusted when it carries a recognised value, followed by an ordered
list of independent rules. The first rule that matches wins, so the
precedence order is data that can be inspected and tested rule by rule.

Rule lists are expected to follow the same priority everywhere: pull request
signals, then push, manual, schedule and finally remote/API markers.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from pipeline_promotion.models.pipeline import TriggerReason

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TriggerRule[T]:
    """A named predicate that, when it holds, decides the trigger reason."""

    name: str
    reason: TriggerReason
    predicate: Callable[[T], bool]

    def matches(self, run: T) -> bool:
        """Evaluate the predicate, treating malformed payloads as no match."""
        try:
            return bool(self.predicate(run))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.debug("Trigger rule %s skipped: %s", self.name, exc)
            return False


@dataclass(frozen=True, kw_only=True)
class TriggerClassifier[T]:
    """Ordered rule evaluation for one provider's raw run type."""

    provider: str
    rules: Sequence[TriggerRule[T]]
    explicit: Callable[[T], str | None] | None = None
    explicit_reasons: Mapping[str, TriggerReason] = field(default_factory=dict)

    def classify(self, run: T | None) -> TriggerReason:
        """Return the trigger reason for ``run``, ``UNKNOWN`` if nothing matched."""
        if run is None:
            return TriggerReason.UNKNOWN

        if (reason := self._explicit_reason(run)) is not None:
            return reason

        for rule in self.rules:
            if rule.matches(run):
                log.debug("%s run classified by rule %s", self.provider, rule.name)
                return rule.reason

        return TriggerReason.UNKNOWN

    def _explicit_reason(self, run: T) -> TriggerReason | None:
        if self.explicit is None:
            return None
        try:
            value = self.explicit(run)
        except (AttributeError, KeyError, TypeError, ValueError):
            return None
        if not isinstance(value, str):
            return None
        return self.explicit_reasons.get(value)


def classify_trigger[T](
    classifier: TriggerClassifier[T], run: T | None
) -> TriggerReason:
    """Classify ``run`` with ``classifier``; never raises."""
    return classifier.classify(run)
