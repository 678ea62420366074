"""Tests for condition variants and condition-set matching."""

import re
from decimal import Decimal

from finance_automation.services.condition_evaluator import (
    AmountBetween,
    AmountEquals,
    CategoryIs,
    DescriptionContains,
    DescriptionRegex,
    FromAccount,
    RawTextContains,
    SourceIn,
    ToAccount,
    TransactionCandidate,
    TypeIs,
    matches,
)


def candidate(**overrides) -> TransactionCandidate:  # type: ignore[no-untyped-def]
    """Create a candidate transaction for testing."""
    fields = {
        "description": "Rappi order 123",
        "amount": Decimal("45000"),
        "source": "sms",
        "raw_text": "Bancolombia le informa compra por $45.000 en RAPPI *1234",
    }
    fields.update(overrides)
    return TransactionCandidate(**fields)


class TestTextConditions:
    """Tests for substring and regex conditions."""

    def test_raw_text_contains_any_term(self) -> None:
        """Test raw text matches when any term is present."""
        condition = RawTextContains(("Davivienda", "1234"))

        assert condition.holds(candidate()) is True

    def test_raw_text_contains_is_case_insensitive(self) -> None:
        """Test substring matching ignores case."""
        condition = RawTextContains(("bancolombia",))

        assert condition.holds(candidate()) is True

    def test_raw_text_missing_never_matches(self) -> None:
        """Test a candidate without raw text fails raw text conditions."""
        condition = RawTextContains(("Bancolombia",))

        assert condition.holds(candidate(raw_text=None)) is False

    def test_empty_term_list_never_matches(self) -> None:
        """Test an empty term list is a condition that never holds."""
        assert RawTextContains(()).holds(candidate()) is False
        assert DescriptionContains(()).holds(candidate()) is False

    def test_description_contains(self) -> None:
        """Test description substring matching."""
        assert DescriptionContains(("rappi",)).holds(candidate()) is True
        assert DescriptionContains(("uber",)).holds(candidate()) is False

    def test_description_regex_is_matched_as_written(self) -> None:
        """Test regex uses the pattern's own flags."""
        assert DescriptionRegex(re.compile(r"order \d+")).holds(candidate()) is True
        assert DescriptionRegex(re.compile(r"^rappi")).holds(candidate()) is False
        assert (
            DescriptionRegex(re.compile(r"(?i)^rappi")).holds(candidate()) is True
        )


class TestAmountConditions:
    """Tests for amount conditions."""

    def test_amount_between_is_inclusive(self) -> None:
        """Test both bounds of the range are included."""
        condition = AmountBetween(Decimal("45000"), Decimal("50000"))

        assert condition.holds(candidate()) is True
        assert condition.holds(candidate(amount=Decimal("50000"))) is True
        assert condition.holds(candidate(amount=Decimal("50000.01"))) is False
        assert condition.holds(candidate(amount=Decimal("44999.99"))) is False

    def test_amount_equals(self) -> None:
        """Test exact amount matching."""
        assert AmountEquals(Decimal("45000")).holds(candidate()) is True
        assert AmountEquals(Decimal("45001")).holds(candidate()) is False


class TestFieldConditions:
    """Tests for conditions on candidate fields."""

    def test_source_in(self) -> None:
        """Test source membership."""
        assert SourceIn(frozenset({"sms", "email"})).holds(candidate()) is True
        assert SourceIn(frozenset({"manual"})).holds(candidate()) is False

    def test_type_is(self) -> None:
        """Test type equality."""
        assert TypeIs("expense").holds(candidate()) is True
        assert TypeIs("income").holds(candidate()) is False

    def test_account_conditions(self) -> None:
        """Test source and destination account conditions."""
        linked = candidate(account_id="acc-1", transfer_to_account_id="acc-2")

        assert FromAccount("acc-1").holds(linked) is True
        assert FromAccount("acc-2").holds(linked) is False
        assert ToAccount("acc-2").holds(linked) is True
        assert ToAccount("acc-2").holds(candidate()) is False

    def test_category_is(self) -> None:
        """Test category equality."""
        assert CategoryIs("cat-food").holds(candidate(category_id="cat-food")) is True
        assert CategoryIs("cat-food").holds(candidate()) is False


class TestMatches:
    """Tests for combining conditions."""

    def test_empty_condition_set_always_matches(self) -> None:
        """Test a rule without conditions matches everything."""
        assert matches((), "and", candidate()) is True
        assert matches((), "or", candidate()) is True

    def test_and_requires_every_condition(self) -> None:
        """Test AND fails when one condition fails."""
        conditions = (
            DescriptionContains(("rappi",)),
            AmountBetween(Decimal("100000"), Decimal("200000")),
        )

        assert matches(conditions, "and", candidate()) is False

    def test_or_requires_any_condition(self) -> None:
        """Test OR succeeds when one condition holds."""
        conditions = (
            DescriptionContains(("rappi",)),
            AmountBetween(Decimal("100000"), Decimal("200000")),
        )

        assert matches(conditions, "or", candidate()) is True

    def test_or_fails_when_nothing_holds(self) -> None:
        """Test OR fails when no condition holds."""
        conditions = (DescriptionContains(("uber",)), TypeIs("income"))

        assert matches(conditions, "or", candidate()) is False
