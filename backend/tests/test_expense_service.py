"""Tests for split calculation and expense validation."""
import math

import pytest

from conftest import make_expense
from tripplanner.core.expense_service import ExpenseValidator, SplitCalculator, expense_from_document
from tripplanner.errors import ValidationError
from tripplanner.expenses.models import MultiPayer, SinglePayer, Split
from tripplanner.utils.enums import ExpenseCategory, SplitMethod


def payload(**overrides):
    data = {
        "title": "Dinner",
        "amount": 90,
        "currency": "EUR",
        "paidBy": "a",
        "splitMethod": "equal",
        "splits": [{"userId": "a"}, {"userId": "b"}, {"userId": "c"}],
        "category": "food",
    }
    data.update(overrides)
    return data


def validate(**overrides):
    return ExpenseValidator.validate(payload(**overrides), expense_id="e1")


class TestSplitCalculator:
    def test_equal_split_between_two(self):
        expense = make_expense(amount=100)
        assert SplitCalculator.split_amount(expense, "a") == 50
        assert SplitCalculator.split_amount(expense, "b") == 50

    @pytest.mark.parametrize("n", [1, 3, 7])
    def test_equal_split_sums_to_amount(self, n):
        expense = make_expense(amount=100, splits=[Split(f"p{i}") for i in range(n)])
        shares = SplitCalculator.split_all(expense)
        assert math.fsum(shares.values()) == pytest.approx(100)

    def test_equal_split_uses_split_list_size(self):
        # Three trip members, but only two in the split
        expense = make_expense(amount=60, splits=[Split("a"), Split("b")])
        assert SplitCalculator.split_amount(expense, "a") == 30

    def test_custom_amount(self):
        expense = make_expense(
            amount=100,
            method=SplitMethod.CUSTOM_AMOUNT,
            splits=[Split("a", amount=70), Split("b", amount=30)],
        )
        assert SplitCalculator.split_amount(expense, "a") == 70
        assert SplitCalculator.split_amount(expense, "b") == 30

    def test_custom_amount_unset_is_zero(self):
        expense = make_expense(method=SplitMethod.CUSTOM_AMOUNT, splits=[Split("a", amount=100), Split("b")])
        assert SplitCalculator.split_amount(expense, "b") == 0

    def test_custom_percentage(self):
        expense = make_expense(
            amount=200,
            method=SplitMethod.CUSTOM_PERCENTAGE,
            splits=[Split("a", percentage=25), Split("b", percentage=75)],
        )
        assert SplitCalculator.split_amount(expense, "a") == 50
        assert SplitCalculator.split_amount(expense, "b") == 150

    def test_absent_participant_owes_nothing(self):
        expense = make_expense()
        assert SplitCalculator.split_amount(expense, "zed") == 0


class TestExpenseValidator:
    def test_valid_expense(self):
        expense = validate()
        assert expense.title == "Dinner"
        assert expense.amount == 90
        assert expense.paid_by == SinglePayer("a")
        assert expense.split_method == SplitMethod.EQUAL
        assert expense.category == ExpenseCategory.FOOD
        assert [s.user_id for s in expense.splits] == ["a", "b", "c"]

    def test_defaults(self):
        data = payload()
        del data["category"]
        del data["currency"]
        expense = ExpenseValidator.validate(data, expense_id="e1")
        assert expense.category == ExpenseCategory.OTHER
        assert expense.currency == "EUR"
        assert expense.date

    def test_title_required(self):
        with pytest.raises(ValidationError, match="required fields"):
            validate(title="  ")

    @pytest.mark.parametrize("amount", [0, -5, "abc", None, True])
    def test_amount_must_be_positive_number(self, amount):
        with pytest.raises(ValidationError):
            validate(amount=amount)

    def test_amount_as_numeric_string(self):
        assert validate(amount="12.50").amount == 12.5

    def test_single_payer_required(self):
        with pytest.raises(ValidationError, match="who paid"):
            validate(paidBy="")

    def test_multiple_payers_matching_total(self):
        expense = validate(amount=100, paidBy=[{"userId": "a", "amount": 60}, {"userId": "b", "amount": 40}])
        assert isinstance(expense.paid_by, MultiPayer)
        assert [(p.user_id, p.amount) for p in expense.paid_by.payers] == [("a", 60), ("b", 40)]

    def test_multiple_payers_mismatch_rejected(self):
        with pytest.raises(ValidationError, match=r"Total paid \(90.00\) must equal expense amount \(100.00\)"):
            validate(amount=100, paidBy=[{"userId": "a", "amount": 60}, {"userId": "b", "amount": 30}])

    def test_multiple_payers_within_tolerance(self):
        expense = validate(amount=100, paidBy=[{"userId": "a", "amount": 66.67}, {"userId": "b", "amount": 33.33}])
        assert isinstance(expense.paid_by, MultiPayer)

    def test_payer_amount_must_be_positive(self):
        with pytest.raises(ValidationError, match="greater than 0"):
            validate(amount=100, paidBy=[{"userId": "a", "amount": 100}, {"userId": "b", "amount": 0}])

    def test_duplicate_payer_rejected(self):
        with pytest.raises(ValidationError):
            validate(amount=100, paidBy=[{"userId": "a", "amount": 50}, {"userId": "a", "amount": 50}])

    def test_custom_percentage_sums_to_100(self):
        expense = validate(
            splitMethod="custom-percentage",
            splits=[
                {"userId": "a", "percentage": 33.34},
                {"userId": "b", "percentage": 33.33},
                {"userId": "c", "percentage": 33.33},
            ],
        )
        assert [s.percentage for s in expense.splits] == [33.34, 33.33, 33.33]
        assert all(s.amount is None for s in expense.splits)

    def test_custom_percentage_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="100%"):
            validate(
                splitMethod="custom-percentage",
                splits=[{"userId": "a", "percentage": 50}, {"userId": "b", "percentage": 40}],
            )

    def test_custom_amount_sums_to_total(self):
        expense = validate(
            splitMethod="custom-amount",
            splits=[{"userId": "a", "amount": 50}, {"userId": "b", "amount": 40.005}],
        )
        assert math.fsum(s.amount for s in expense.splits) == pytest.approx(90, abs=0.01)

    def test_custom_amount_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Custom amounts must sum to 90 EUR"):
            validate(splitMethod="custom-amount", splits=[{"userId": "a", "amount": 50}, {"userId": "b"}])

    def test_negative_split_amount_rejected(self):
        with pytest.raises(ValidationError):
            validate(
                splitMethod="custom-amount",
                splits=[{"userId": "a", "amount": 100}, {"userId": "b", "amount": -10}],
            )

    def test_empty_splits_rejected(self):
        with pytest.raises(ValidationError, match="at least one participant"):
            validate(splits=[])

    def test_duplicate_split_participant_rejected(self):
        with pytest.raises(ValidationError):
            validate(splits=[{"userId": "a"}, {"userId": "a"}])

    def test_unknown_split_method_rejected(self):
        with pytest.raises(ValidationError, match="split method"):
            validate(splitMethod="by-weight")

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError, match="category"):
            validate(category="fuel")

    def test_bad_currency_rejected(self):
        with pytest.raises(ValidationError, match="currency"):
            validate(currency="EURO")

    def test_linked_item_type_checked(self):
        with pytest.raises(ValidationError, match="linked item"):
            validate(linkedItemType="boat", linkedItemId="boat-0")


class TestExpenseDocuments:
    def test_round_trip_through_document(self):
        original = ExpenseValidator.validate(
            payload(paidBy=[{"userId": "a", "amount": 45}, {"userId": "b", "amount": 45}], linkedItemType="hotel", linkedItemId="hotel-0"),
            expense_id="e9",
            created_by="a",
            created_at="2025-01-01T00:00:00+00:00",
        )
        doc = original.to_dict()
        assert doc["paidBy"] == [{"userId": "a", "amount": 45}, {"userId": "b", "amount": 45}]
        assert doc["splitMethod"] == "equal"
        assert doc["linkedItemId"] == "hotel-0"

        rebuilt = expense_from_document(doc)
        assert rebuilt == original

    def test_single_payer_serialized_as_id(self):
        assert validate().to_dict()["paidBy"] == "a"
