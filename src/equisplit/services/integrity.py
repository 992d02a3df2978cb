from __future__ import annotations

import math
from typing import Container

from equisplit.db.models import Expense

TOLERANCE = 0.01


class LedgerIntegrityError(ValueError):
    pass


class UnknownUserError(LedgerIntegrityError):
    def __init__(self, user_id: str, expense_id: str | None = None) -> None:
        self.user_id = user_id
        self.expense_id = expense_id
        where = f" in expense {expense_id}" if expense_id else ""
        super().__init__(f"unknown user id {user_id!r}{where}")


class SplitMismatchError(LedgerIntegrityError):
    pass


def assert_known_user(known_ids: Container[str], user_id: str, expense_id: str | None = None) -> None:
    if user_id not in known_ids:
        raise UnknownUserError(user_id, expense_id)


def assert_splits_balance(expense: Expense, tolerance: float = TOLERANCE) -> None:
    total = sum(split.amount for split in expense.splits)
    if abs(total - expense.amount) > tolerance:
        raise SplitMismatchError(
            f"splits of expense {expense.id} sum to {total:.2f}, expected {expense.amount:.2f}"
        )


def validate_expense(expense: Expense, known_ids: Container[str], tolerance: float = TOLERANCE) -> None:
    """Reject an expense that would corrupt the ledger.

    The payer and every split subject must be known users, amounts must be
    finite and non-negative, and the splits must add up to the expense amount.
    """
    if not math.isfinite(expense.amount):
        raise LedgerIntegrityError(f"expense {expense.id} has a non-finite amount")
    if expense.amount < 0:
        raise LedgerIntegrityError(f"expense {expense.id} has a negative amount")
    if not expense.splits:
        raise LedgerIntegrityError(f"expense {expense.id} has no splits")

    assert_known_user(known_ids, expense.paid_by, expense.id)
    seen: set[str] = set()
    for split in expense.splits:
        assert_known_user(known_ids, split.user_id, expense.id)
        if split.user_id in seen:
            raise LedgerIntegrityError(f"user {split.user_id!r} appears twice in expense {expense.id}")
        if not (math.isfinite(split.amount) and math.isfinite(split.weight)):
            raise LedgerIntegrityError(f"non-finite split for {split.user_id!r} in expense {expense.id}")
        if split.amount < 0:
            raise LedgerIntegrityError(f"negative split for {split.user_id!r} in expense {expense.id}")
        seen.add(split.user_id)

    assert_splits_balance(expense, tolerance)
