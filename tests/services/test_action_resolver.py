"""Tests for ActionResolver."""

from decimal import Decimal

from finance_automation.services.action_resolver import ActionResolver
from finance_automation.services.rule_selector import RuleSelector


def resolve(rules, candidate, known_account_ids=None):  # type: ignore[no-untyped-def]
    """Select, order and resolve in one step."""
    ordered = RuleSelector().select(rules).rules
    return ActionResolver().resolve(ordered, candidate, known_account_ids)


class TestExclusiveFields:
    """Tests for first-writer-wins fields."""

    def test_no_matching_rules_returns_candidate_values(  # type: ignore[no-untyped-def]
        self, make_rule, make_candidate
    ) -> None:
        """Test a candidate nothing matches comes back unchanged."""
        rules = [
            make_rule("r1", conditions={"description_contains": ["uber"]},
                      actions={"set_category": "transport"}),
        ]
        candidate = make_candidate(category_id="cat-x", account_id="acc-1")

        resolved = resolve(rules, candidate)

        assert resolved.category_id == "cat-x"
        assert resolved.account_id == "acc-1"
        assert resolved.type == "expense"
        assert resolved.applied_rules == []
        assert resolved.notes is None
        assert resolved.is_reconciled is False

    def test_higher_priority_wins(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test only the highest-priority writer is credited for a field."""
        rules = [
            make_rule("a", priority=10, actions={"set_category": "A"}),
            make_rule("b", priority=5, actions={"set_category": "B"}),
        ]

        resolved = resolve(rules, make_candidate())

        assert resolved.category_id == "A"
        assert [r.rule_id for r in resolved.applied_rules] == ["a"]

    def test_shadowed_rule_still_applies_other_actions(  # type: ignore[no-untyped-def]
        self, make_rule, make_candidate
    ) -> None:
        """Test atomicity is per field, not per rule."""
        rules = [
            make_rule("a", priority=10, actions={"set_category": "A"}),
            make_rule("b", priority=5,
                      actions={"set_category": "B", "set_account": "acc-2"}),
        ]

        resolved = resolve(rules, make_candidate())

        assert resolved.category_id == "A"
        assert resolved.account_id == "acc-2"
        applied = {r.rule_id: r.actions for r in resolved.applied_rules}
        assert applied == {"a": {"set_category": "A"}, "b": {"set_account": "acc-2"}}

    def test_set_type_overrides_candidate_type(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test set_type replaces the candidate's type."""
        rules = [make_rule("r1", actions={"set_type": "income"})]

        resolved = resolve(rules, make_candidate())

        assert resolved.type == "income"

    def test_original_values_are_kept(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test the pre-rule account and category are reported for previews."""
        rules = [make_rule("r1", actions={"set_account": "acc-9", "set_category": "c9"})]
        candidate = make_candidate(account_id="acc-1", category_id="c1")

        resolved = resolve(rules, candidate)

        assert resolved.account_id == "acc-9"
        assert resolved.original.account_id == "acc-1"
        assert resolved.original.category_id == "c1"

    def test_candidate_is_not_mutated(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test resolution returns a new value."""
        rules = [make_rule("r1", actions={"set_category": "c9"})]
        candidate = make_candidate()

        resolve(rules, candidate)

        assert candidate.category_id is None


class TestCumulativeFields:
    """Tests for notes and reconciliation."""

    def test_notes_accumulate_in_priority_order(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test every matching rule's note is kept, highest priority first."""
        rules = [
            make_rule("low", priority=1, actions={"add_note": "second"}),
            make_rule("high", priority=9, actions={"add_note": "first"}),
        ]

        resolved = resolve(rules, make_candidate(notes="typed by user"))

        assert resolved.notes == "typed by user\nfirst\nsecond"
        assert [r.rule_id for r in resolved.applied_rules] == ["high", "low"]

    def test_auto_reconcile_is_or_across_rules(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test one reconciling rule is enough and each is credited."""
        rules = [
            make_rule("a", priority=2, actions={"auto_reconcile": True}),
            make_rule("b", priority=1, actions={"auto_reconcile": True}),
        ]

        resolved = resolve(rules, make_candidate())

        assert resolved.is_reconciled is True
        assert [r.rule_id for r in resolved.applied_rules] == ["a", "b"]

    def test_rule_with_nothing_to_contribute_is_not_credited(  # type: ignore[no-untyped-def]
        self, make_rule, make_candidate
    ) -> None:
        """Test a matching rule whose targets were all taken is left out."""
        rules = [
            make_rule("a", priority=2, actions={"set_category": "A"}),
            make_rule("b", priority=1, actions={"set_category": "B"}),
        ]

        resolved = resolve(rules, make_candidate())

        assert "b" not in {r.rule_id for r in resolved.applied_rules}


class TestConditionLogic:
    """Tests for AND versus OR rules."""

    def test_and_rule_needs_every_condition(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test an AND rule does not fire on a partial match."""
        rules = [
            make_rule(
                "r1",
                conditions={
                    "description_contains": ["coffee"],
                    "amount_between": [50000, 100000],
                },
                actions={"set_category": "cafes"},
            )
        ]

        resolved = resolve(rules, make_candidate())

        assert resolved.category_id is None

    def test_or_rule_fires_on_any_condition(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test an OR rule fires on a partial match."""
        rules = [
            make_rule(
                "r1",
                condition_logic="or",
                conditions={
                    "description_contains": ["coffee"],
                    "amount_between": [50000, 100000],
                },
                actions={"set_category": "cafes"},
            )
        ]

        resolved = resolve(rules, make_candidate())

        assert resolved.category_id == "cafes"

    def test_conditions_see_candidate_not_intermediate_values(  # type: ignore[no-untyped-def]
        self, make_rule, make_candidate
    ) -> None:
        """Test a rule cannot trigger on a category set by another rule."""
        rules = [
            make_rule("set", priority=10, actions={"set_category": "food"}),
            make_rule("chain", priority=1, conditions={"category": "food"},
                      actions={"add_note": "chained"}),
        ]

        resolved = resolve(rules, make_candidate(amount=Decimal("1")))

        assert resolved.notes is None


class TestTransferDestination:
    """Tests for link_to_account resolution."""

    def test_link_sets_destination(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test a known destination is taken."""
        rules = [make_rule("t", rule_type="transfer",
                           actions={"link_to_account": "acc-2"})]

        resolved = resolve(rules, make_candidate(account_id="acc-1"), {"acc-1", "acc-2"})

        assert resolved.transfer_to_account_id == "acc-2"
        assert resolved.applied_rules[0].actions == {"link_to_account": "acc-2"}

    def test_unknown_destination_falls_through(self, make_rule, make_candidate) -> None:  # type: ignore[no-untyped-def]
        """Test a missing account is skipped and a lower rule may link."""
        rules = [
            make_rule("bad", priority=9, actions={"link_to_account": "gone"}),
            make_rule("ok", priority=1, actions={"link_to_account": "acc-2"}),
        ]

        resolved = resolve(rules, make_candidate(account_id="acc-1"), {"acc-1", "acc-2"})

        assert resolved.transfer_to_account_id == "acc-2"
        assert [i.rule_id for i in resolved.issues] == ["bad"]
        assert [r.rule_id for r in resolved.applied_rules] == ["ok"]
