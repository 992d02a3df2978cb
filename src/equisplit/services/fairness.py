from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from equisplit.db.models import Expense, User
from equisplit.services.integrity import assert_known_user

MAX_SCORE = 100.0
# Score a user gets per unit of contribution/consumption ratio. Break-even
# (ratio 1) lands on 50 and the score saturates at ratio 2.
SCORE_PER_RATIO = 50.0


@dataclass(slots=True)
class FairnessStats:
    user_id: str
    contribution: float
    consumption: float
    fairness_score: float


def fairness_score(contribution: float, consumption: float) -> float:
    ratio = contribution / consumption if consumption > 0 else 1.0
    return min(MAX_SCORE, max(0.0, ratio * SCORE_PER_RATIO))


def calculate_fairness(users: Sequence[User], expenses: Iterable[Expense]) -> list[FairnessStats]:
    contribution: dict[str, float] = {user.id: 0.0 for user in users}
    consumption: dict[str, float] = {user.id: 0.0 for user in users}

    for expense in expenses:
        assert_known_user(contribution, expense.paid_by, expense.id)
        contribution[expense.paid_by] += expense.amount
        for split in expense.splits:
            assert_known_user(consumption, split.user_id, expense.id)
            consumption[split.user_id] += split.amount

    return [
        FairnessStats(
            user_id=user_id,
            contribution=contribution[user_id],
            consumption=consumption[user_id],
            fairness_score=fairness_score(contribution[user_id], consumption[user_id]),
        )
        for user_id in contribution
    ]
