"""Immutable ledger snapshots with memoised projections."""

from __future__ import annotations

from dataclasses import replace
from functools import cached_property
from typing import Iterable

from equisplit.db.models import Expense, User
from equisplit.services.fairness import FairnessStats, calculate_fairness
from equisplit.services.integrity import TOLERANCE, LedgerIntegrityError, validate_expense
from equisplit.services.settlement import Settlement, settle
from equisplit.services.split import calculate_balances


def _copy_expense(expense: Expense) -> Expense:
    return replace(expense, splits=[replace(split) for split in expense.splits])


class LedgerSnapshot:
    """Point-in-time copy of the users and expenses of one group.

    Balances, settlements and fairness are derived on first access and cached
    for the lifetime of the snapshot. A changed ledger needs a new snapshot.
    """

    def __init__(
        self,
        users: Iterable[User],
        expenses: Iterable[Expense],
        *,
        tolerance: float = TOLERANCE,
        strict: bool = False,
    ) -> None:
        self.users: tuple[User, ...] = tuple(replace(user) for user in users)
        self.expenses: tuple[Expense, ...] = tuple(_copy_expense(expense) for expense in expenses)
        self.tolerance = tolerance
        self.strict = strict

    @cached_property
    def balances(self) -> dict[str, float]:
        return calculate_balances(self.users, self.expenses)

    @cached_property
    def settlements(self) -> list[Settlement]:
        return settle(self.balances, tolerance=self.tolerance, strict=self.strict)

    @cached_property
    def fairness(self) -> list[FairnessStats]:
        return calculate_fairness(self.users, self.expenses)

    @property
    def total_spent(self) -> float:
        return sum(expense.amount for expense in self.expenses)

    def with_expense(self, expense: Expense) -> LedgerSnapshot:
        validate_expense(expense, {user.id for user in self.users}, self.tolerance)
        if any(existing.id == expense.id for existing in self.expenses):
            raise LedgerIntegrityError(f"expense {expense.id} is already in the ledger")
        return LedgerSnapshot(
            self.users,
            (expense, *self.expenses),
            tolerance=self.tolerance,
            strict=self.strict,
        )

    def without_expense(self, expense_id: str) -> LedgerSnapshot:
        return LedgerSnapshot(
            self.users,
            (expense for expense in self.expenses if expense.id != expense_id),
            tolerance=self.tolerance,
            strict=self.strict,
        )
