from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from equisplit.db.models import Expense, Tag, User
from equisplit.services.fairness import FairnessStats
from equisplit.services.settlement import Settlement


def user_names(users: Iterable[User]) -> dict[str, str]:
    return {user.id: user.name for user in users}


def _name(names: Mapping[str, str], user_id: str) -> str:
    return names.get(user_id) or user_id


def format_settlement_narration(
    settlements: Sequence[Settlement],
    users: Iterable[User],
    currency: str = "$",
) -> str:
    """Render settlements as plain sentences for a narration service.

    ``"Jordan owes Alex $10.00. Casey owes Alex $10.00."``
    """
    names = user_names(users)
    return " ".join(
        f"{_name(names, s.from_user)} owes {_name(names, s.to_user)} {currency}{s.amount:.2f}."
        for s in settlements
    )


def format_settlement_lines(
    settlements: Sequence[Settlement],
    users: Iterable[User],
    currency: str = "$",
) -> str:
    names = user_names(users)
    lines = ["Settlements:"]
    if not settlements:
        lines.append("• everyone is settled up")
    for s in settlements:
        lines.append(f"• {_name(names, s.from_user)} → {_name(names, s.to_user)}: {currency}{s.amount:.2f}")
    return "\n".join(lines)


def format_balance_summary(balances: Mapping[str, float], users: Iterable[User], currency: str = "$") -> str:
    lines = ["Balances:"]
    for user in users:
        balance = balances.get(user.id, 0.0)
        sign = "-" if round(balance, 2) < 0 else "+"
        lines.append(f"• {user.name}: {sign}{currency}{abs(balance):.2f}")
    return "\n".join(lines)


def format_fairness_summary(stats: Sequence[FairnessStats], users: Iterable[User], currency: str = "$") -> str:
    names = user_names(users)
    lines = ["Fairness:"]
    for stat in stats:
        lines.append(
            f"• {_name(names, stat.user_id)}: {stat.fairness_score:.0f}% "
            f"(paid {currency}{stat.contribution:.2f}, used {currency}{stat.consumption:.2f})"
        )
    return "\n".join(lines)


def spending_by_tag(expenses: Iterable[Expense]) -> dict[Tag, float]:
    totals: dict[Tag, float] = {}
    for expense in expenses:
        totals[expense.tag] = totals.get(expense.tag, 0.0) + expense.amount
    return totals
