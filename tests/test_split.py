from datetime import datetime, timezone

import pytest

from equisplit.db.models import Expense, Split, Tag, User
from equisplit.services.integrity import UnknownUserError
from equisplit.services.split import calculate_balances, equal_weights, new_expense, split_by_weights

USERS = [User("a", "Alex"), User("b", "Jordan"), User("c", "Casey")]


def test_split_by_weights_equal():
    splits = split_by_weights(30.0, {"a": 1, "b": 1, "c": 1})
    assert [s.user_id for s in splits] == ["a", "b", "c"]
    assert [s.amount for s in splits] == pytest.approx([10.0, 10.0, 10.0])


def test_split_by_weights_weighted():
    splits = split_by_weights(100.0, {"a": 2, "b": 1, "c": 1})
    assert [s.amount for s in splits] == pytest.approx([50.0, 25.0, 25.0])
    assert [s.weight for s in splits] == [2, 1, 1]


def test_split_by_weights_zero_weight_consumes_nothing():
    splits = split_by_weights(40.0, {"a": 1, "b": 0, "c": 1})
    assert [s.amount for s in splits] == pytest.approx([20.0, 0.0, 20.0])


def test_split_by_weights_sums_to_amount():
    splits = split_by_weights(100.0, {"a": 1, "b": 1, "c": 1})
    assert sum(s.amount for s in splits) == pytest.approx(100.0)


@pytest.mark.parametrize(
    "amount, weights",
    [
        (-1.0, {"a": 1}),
        (10.0, {}),
        (10.0, {"a": 0, "b": 0}),
        (10.0, {"a": 2, "b": -1}),
    ],
)
def test_split_by_weights_rejects_bad_input(amount, weights):
    with pytest.raises(ValueError):
        split_by_weights(amount, weights)


def test_new_expense_defaults():
    expense = new_expense("  Dinner ", 30.0, "a", equal_weights(USERS))
    assert expense.description == "Dinner"
    assert expense.tag is Tag.SHARED
    assert expense.id
    assert expense.date.tzinfo is not None
    assert len(expense.splits) == 3


def test_new_expense_rejects_blank_description():
    with pytest.raises(ValueError):
        new_expense("   ", 30.0, "a", equal_weights(USERS))


def test_calculate_balances_equal_split():
    expense = new_expense("Dinner", 30.0, "a", equal_weights(USERS))
    balances = calculate_balances(USERS, [expense])
    assert balances == pytest.approx({"a": 20.0, "b": -10.0, "c": -10.0})


def test_calculate_balances_mixed_is_zero_sum():
    expenses = [
        new_expense("Hotel", 312.45, "a", {"a": 1, "b": 1, "c": 1}),
        new_expense("Taxi", 17.3, "b", {"a": 2, "b": 1}),
        new_expense("Tickets", 99.99, "c", {"a": 1, "b": 3, "c": 0.5}),
    ]
    balances = calculate_balances(USERS, expenses)
    assert abs(sum(balances.values())) < 1e-9


def test_calculate_balances_no_expenses():
    assert calculate_balances(USERS, []) == {"a": 0.0, "b": 0.0, "c": 0.0}


def test_calculate_balances_keeps_user_order():
    expense = new_expense("Dinner", 30.0, "c", equal_weights(USERS))
    assert list(calculate_balances(USERS, [expense])) == ["a", "b", "c"]


def test_calculate_balances_unknown_payer():
    expense = Expense(
        id="e1",
        description="Ghost",
        amount=10.0,
        paid_by="zz",
        tag=Tag.FOOD,
        date=datetime(2024, 5, 10, tzinfo=timezone.utc),
        splits=[Split("a", 1, 10.0)],
    )
    with pytest.raises(UnknownUserError) as exc:
        calculate_balances(USERS, [expense])
    assert exc.value.user_id == "zz"
    assert exc.value.expense_id == "e1"


def test_calculate_balances_unknown_split_user():
    expense = new_expense("Dinner", 20.0, "a", {"a": 1, "zz": 1})
    with pytest.raises(UnknownUserError):
        calculate_balances(USERS, [expense])


@pytest.mark.parametrize(
    "amount, weights",
    [
        (float("nan"), {"a": 1, "b": 1}),
        (float("inf"), {"a": 1}),
        (10.0, {"a": 1, "b": float("nan")}),
        (10.0, {"a": float("inf")}),
        (10.0, {"a": 1e308, "b": 1e308}),
    ],
)
def test_split_by_weights_rejects_non_finite(amount, weights):
    with pytest.raises(ValueError):
        split_by_weights(amount, weights)
