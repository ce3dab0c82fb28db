"""Tests for the rule registry."""
from __future__ import annotations
from codecanon.core.environment import Capabilities
from codecanon.core.registry import RuleRegistry
from codecanon.rules.backend.model_field_descriptions import ModelFieldDescriptionsRule
from tests.helpers import ConfigEchoRule, FixTodoRule, ReviewRule, TodoRule, UnsupportedRule


class TestRegistration:
    def test_ordinals_follow_registration_order(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [TodoRule, ReviewRule, FixTodoRule])
        assert isinstance(registry.get_rule_by_ordinal("docs", 1), TodoRule)
        assert isinstance(registry.get_rule_by_ordinal("docs", 2), ReviewRule)
        assert isinstance(registry.get_rule_by_ordinal("docs", 3), FixTodoRule)

    def test_duplicate_registration_is_a_noop(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [TodoRule, ReviewRule])
        registry.register("docs", TodoRule)
        assert registry.count("docs") == 2
        assert registry.ordinal_of("docs", TodoRule) == 1 and registry.ordinal_of("docs", ReviewRule) == 2

    def test_ordinal_out_of_range(self) -> None:
        registry = RuleRegistry()
        registry.register("docs", TodoRule)
        assert registry.get_rule_by_ordinal("docs", 0) is None
        assert registry.get_rule_by_ordinal("docs", 2) is None
        assert registry.get_rule_by_ordinal("other", 1) is None

    def test_register_many_with_config_entries(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [TodoRule, {ConfigEchoRule: {"level": 3}}])
        assert registry.count("docs") == 2 and registry.rule_config("docs", ConfigEchoRule) == {"level": 3}

    def test_register_many_with_mapping(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", {TodoRule: None, ConfigEchoRule: {"level": 1}})
        assert registry.rule_classes("docs") == [TodoRule, ConfigEchoRule]

    def test_total_count(self) -> None:
        registry = RuleRegistry()
        registry.register("a", TodoRule)
        registry.register_many("b", [TodoRule, ReviewRule])
        assert registry.total_count() == 3


class TestConfiguration:
    def test_rule_config_overrides_thresholds(self) -> None:
        registry = RuleRegistry()
        registry.set_group_config("docs", {"thresholds": {"level": 1, "depth": 4}})
        registry.register("docs", ConfigEchoRule, {"level": 9})
        rule = registry.get_rules("docs")[0]
        assert rule.config("level") == 9 and rule.config("depth") == 4

    def test_thresholds_apply_without_override(self) -> None:
        registry = RuleRegistry()
        registry.set_group_config("docs", {"thresholds": {"level": 2}})
        registry.register("docs", ConfigEchoRule)
        assert registry.get_rules("docs")[0].config("level") == 2

    def test_missing_config_falls_back_to_default(self) -> None:
        registry = RuleRegistry()
        registry.register("docs", ConfigEchoRule)
        assert registry.get_rules("docs")[0].config("level", 7) == 7

    def test_group_without_rules_is_known(self) -> None:
        registry = RuleRegistry()
        registry.set_group_config("empty", {"extensions": ["txt"]})
        registry.register("docs", TodoRule)
        assert registry.has_group("empty") and registry.groups() == ["empty", "docs"]
        assert registry.get_rules("empty") == [] and not registry.has_group("missing")


class TestSupport:
    def test_unsupported_rules_are_omitted(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [TodoRule, UnsupportedRule, ReviewRule])
        assert [r.rule_id for r in registry.get_rules("docs")] == ["todo-marker", "review-marker"]

    def test_unsupported_rules_keep_their_ordinal(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [TodoRule, UnsupportedRule, ReviewRule])
        assert registry.get_rule_by_ordinal("docs", 2) is None
        assert isinstance(registry.get_rule_by_ordinal("docs", 3), ReviewRule)

    def test_capabilities_gate_support(self) -> None:
        without = RuleRegistry(Capabilities())
        with_pydantic = RuleRegistry(Capabilities().with_packages("pydantic"))
        for registry in (without, with_pydantic):
            registry.register("py", ModelFieldDescriptionsRule)
        assert without.get_rules("py") == []
        assert len(with_pydantic.get_rules("py")) == 1


class TestLookup:
    def test_find_by_id_and_class_name(self) -> None:
        registry = RuleRegistry()
        registry.register_many("docs", [ReviewRule, TodoRule])
        for name in ("todo-marker", "TodoRule", "Todo", f"{TodoRule.__module__}.TodoRule", f"{TodoRule.__module__}:TodoRule"):
            lookup = registry.find_rule(name)
            assert lookup is not None and lookup.group == "docs" and lookup.ordinal == 2
            assert isinstance(lookup.rule, TodoRule)

    def test_find_unknown(self) -> None:
        assert RuleRegistry().find_rule("nope") is None

    def test_all_rules(self) -> None:
        registry = RuleRegistry()
        registry.register("a", TodoRule)
        registry.register("b", ReviewRule)
        assert {group: [r.rule_id for r in rules] for group, rules in registry.all_rules().items()} == {
            "a": ["todo-marker"], "b": ["review-marker"],
        }
