"""Directory-exclusion rules with per-rule remaining-scan counters."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

from diskmap.models.rule import ExcludedDirectoryRule, ScanExclusionRule
from diskmap.utils import normalize_path

log = logging.getLogger(__name__)


class ExclusionRuleSet:
    """In-memory store of :class:`ExcludedDirectoryRule` objects, keyed by normalized path.

    Persistence is left to the caller through :meth:`to_records` and
    :meth:`from_records`.
    """

    def __init__(self, rules: Iterable[ExcludedDirectoryRule] = ()) -> None:
        self._rules: list[ExcludedDirectoryRule] = list(rules)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> ExclusionRuleSet:
        rules = []
        for record in records:
            try:
                rules.append(ExcludedDirectoryRule.from_dict(record))
            except (KeyError, TypeError, ValueError):
                log.warning("Ignoring malformed exclusion rule: %r", record)
        return cls(rules)

    def to_records(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self._rules]

    @property
    def rules(self) -> list[ExcludedDirectoryRule]:
        return list(self._rules)

    @property
    def active_rule_count(self) -> int:
        return sum(1 for r in self._rules if r.is_active)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ExcludedDirectoryRule]:
        return iter(list(self._rules))

    def get(self, rule_id: str | None) -> ExcludedDirectoryRule | None:
        if rule_id is None:
            return None
        return next((r for r in self._rules if r.id == rule_id), None)

    def upsert(self, path: str, remaining_scans: int) -> ExcludedDirectoryRule:
        """Create a rule for ``path`` or overwrite the counter of the existing one."""
        normalized = normalize_path(path)
        for rule in self._rules:
            if rule.normalized_path == normalized:
                rule.remaining_scans = max(0, remaining_scans)
                log.debug("Updated exclusion rule %s: %d scans", normalized, rule.remaining_scans)
                return rule
        rule = ExcludedDirectoryRule(path=normalized, remaining_scans=remaining_scans)
        self._rules.append(rule)
        log.debug("Added exclusion rule %s: %d scans", normalized, rule.remaining_scans)
        return rule

    def set_remaining_scans(self, rule_id: str, value: int) -> bool:
        """Set a rule's counter directly. Returns False if the id is unknown."""
        rule = self.get(rule_id)
        if rule is None:
            return False
        rule.remaining_scans = max(0, value)
        return True

    def remove(self, rule_id: str) -> bool:
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.id != rule_id]
        return len(self._rules) != before

    def active_rules(self) -> list[ScanExclusionRule]:
        """Snapshot of the rules that still have scans left."""
        return [
            ScanExclusionRule(id=r.id, normalized_path=r.normalized_path)
            for r in self._rules
            if r.is_active
        ]

    def consume_matched(self, rule_ids: Iterable[str]) -> int:
        """Use up one scan of every active rule in ``rule_ids``.

        Rules already at zero are left alone. Returns the number of rules
        consumed.
        """
        matched = set(rule_ids)
        if not matched:
            return 0

        now = datetime.now(timezone.utc)
        consumed = 0
        for rule in self._rules:
            if rule.id not in matched or rule.remaining_scans <= 0:
                continue
            rule.remaining_scans -= 1
            rule.total_matches += 1
            rule.last_matched_at = now
            consumed += 1

        if consumed:
            log.info("Consumed %d exclusion rule(s)", consumed)
        return consumed
