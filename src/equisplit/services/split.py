from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence

from equisplit.db.models import Expense, Split, Tag, User
from equisplit.services.integrity import assert_known_user


def split_by_weights(amount: float, weights: Mapping[str, float]) -> list[Split]:
    if not math.isfinite(amount) or amount < 0:
        raise ValueError("amount must be finite and non-negative")
    if not weights:
        raise ValueError("weights must not be empty")
    if any(not math.isfinite(weight) or weight < 0 for weight in weights.values()):
        raise ValueError("weights must be finite and non-negative")

    total_weight = sum(weights.values())
    if not math.isfinite(total_weight):
        raise ValueError("total weight must be finite")
    if total_weight <= 0:
        raise ValueError("at least one weight must be positive")

    return [
        Split(user_id=user_id, weight=weight, amount=weight / total_weight * amount)
        for user_id, weight in weights.items()
    ]


def equal_weights(users: Iterable[User]) -> dict[str, float]:
    return {user.id: 1.0 for user in users}


def new_expense(
    description: str,
    amount: float,
    paid_by: str,
    weights: Mapping[str, float],
    tag: Tag = Tag.SHARED,
    date: Optional[datetime] = None,
    expense_id: Optional[str] = None,
    receipt_url: Optional[str] = None,
) -> Expense:
    if not description.strip():
        raise ValueError("description must not be empty")
    return Expense(
        id=expense_id or str(uuid.uuid4()),
        description=description.strip(),
        amount=amount,
        paid_by=paid_by,
        tag=tag,
        date=date or datetime.now(timezone.utc),
        splits=split_by_weights(amount, weights),
        receipt_url=receipt_url,
    )


def calculate_balances(users: Sequence[User], expenses: Iterable[Expense]) -> dict[str, float]:
    """Net position per user: amount paid minus amount consumed.

    Positive means the user is owed money, negative means the user owes.
    Every user starts at zero, in the order given.
    """
    balances: dict[str, float] = {user.id: 0.0 for user in users}
    for expense in expenses:
        assert_known_user(balances, expense.paid_by, expense.id)
        balances[expense.paid_by] += expense.amount
        for split in expense.splits:
            assert_known_user(balances, split.user_id, expense.id)
            balances[split.user_id] -= split.amount
    return balances
