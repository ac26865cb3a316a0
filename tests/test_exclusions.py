"""Tests for exclusion rules."""

from __future__ import annotations

from diskmap.core.exclusions import ExclusionRuleSet
from diskmap.models.rule import ExcludedDirectoryRule


class TestExcludedDirectoryRule:
    def test_negative_counter_is_clamped(self):
        rule = ExcludedDirectoryRule(path="/data", remaining_scans=-4)
        assert rule.remaining_scans == 0
        assert not rule.is_active

    def test_normalized_path(self):
        rule = ExcludedDirectoryRule(path="/data//cache/../logs/", remaining_scans=1)
        assert rule.normalized_path == "/data/logs"

    def test_dict_roundtrip_keeps_dates(self):
        rule = ExcludedDirectoryRule(path="/data", remaining_scans=2)
        restored = ExcludedDirectoryRule.from_dict(rule.to_dict())

        assert restored.id == rule.id
        assert restored.created_at == rule.created_at
        assert restored.last_matched_at is None


class TestExclusionRuleSet:
    def test_upsert_creates_rule(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/data/cache/", 3)

        assert rule.path == "/data/cache"
        assert rule.remaining_scans == 3
        assert len(rules) == 1

    def test_upsert_same_path_updates_in_place(self):
        rules = ExclusionRuleSet()
        first = rules.upsert("/data/cache", 3)
        second = rules.upsert("/data//cache/", 7)

        assert second is first
        assert first.remaining_scans == 7
        assert len(rules) == 1

    def test_upsert_clamps(self):
        rules = ExclusionRuleSet()
        assert rules.upsert("/x", -1).remaining_scans == 0

    def test_set_remaining_scans(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/x", 1)

        assert rules.set_remaining_scans(rule.id, 5)
        assert rule.remaining_scans == 5
        assert rules.set_remaining_scans(rule.id, -2)
        assert rule.remaining_scans == 0
        assert not rules.set_remaining_scans("missing", 1)

    def test_remove(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/x", 1)

        assert rules.remove(rule.id)
        assert not rules.remove(rule.id)
        assert len(rules) == 0

    def test_active_rules_snapshot(self):
        rules = ExclusionRuleSet()
        active = rules.upsert("/active", 2)
        rules.upsert("/spent", 0)

        snapshot = rules.active_rules()

        assert [(r.id, r.normalized_path) for r in snapshot] == [(active.id, "/active")]
        assert rules.active_rule_count == 1

    def test_consume_matched(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/x", 2)
        other = rules.upsert("/y", 2)

        assert rules.consume_matched({rule.id}) == 1

        assert rule.remaining_scans == 1
        assert rule.total_matches == 1
        assert rule.last_matched_at is not None
        assert other.remaining_scans == 2
        assert other.total_matches == 0

    def test_rule_deactivates_after_its_last_scan(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/x", 1)

        rules.consume_matched([rule.id])
        assert not rule.is_active
        assert rules.active_rules() == []

        assert rules.consume_matched([rule.id]) == 0
        assert rule.remaining_scans == 0
        assert rule.total_matches == 1

    def test_consume_nothing(self):
        rules = ExclusionRuleSet()
        rules.upsert("/x", 1)
        assert rules.consume_matched([]) == 0

    def test_records_roundtrip(self):
        rules = ExclusionRuleSet()
        rule = rules.upsert("/x", 4)
        rules.consume_matched([rule.id])

        restored = ExclusionRuleSet.from_records(rules.to_records())

        loaded = restored.get(rule.id)
        assert loaded.remaining_scans == 3
        assert loaded.total_matches == 1
        assert loaded.last_matched_at == rule.last_matched_at

    def test_malformed_records_are_skipped(self):
        rules = ExclusionRuleSet.from_records([{"path": "/no-id"}, {"id": "ok", "path": "/ok", "remaining_scans": 1}])

        assert [r.id for r in rules] == ["ok"]
