from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping

from equisplit.logging import get_logger
from equisplit.services.integrity import TOLERANCE

log = get_logger(__name__)


class SettlementResidueError(ArithmeticError):
    pass


@dataclass(slots=True)
class Settlement:
    from_user: str
    to_user: str
    amount: float


def settle(
    balances: Mapping[str, float],
    *,
    tolerance: float = TOLERANCE,
    strict: bool = False,
) -> List[Settlement]:
    """Greedily match the largest debtor with the largest creditor.

    Balances within ``tolerance`` of zero are ignored. Ties keep the order of
    ``balances``. Balances that do not net to zero leave part of one side
    unmatched; the imbalance is logged, or raised as
    :class:`SettlementResidueError` when ``strict`` is set.
    """
    imbalance = sum(balances.values())
    if abs(imbalance) > tolerance:
        if strict:
            raise SettlementResidueError(f"balances are off by {imbalance:.2f} and cannot be settled")
        log.warning("settlement.residue", residue=round(imbalance, 2))

    creditors: list[tuple[str, float]] = []
    debtors: list[tuple[str, float]] = []

    for user_id, balance in balances.items():
        if balance > tolerance:
            creditors.append((user_id, balance))
        elif balance < -tolerance:
            debtors.append((user_id, -balance))

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    settlements: list[Settlement] = []
    i, j = 0, 0

    while i < len(debtors) and j < len(creditors):
        debt_id, debt_amount = debtors[i]
        cred_id, cred_amount = creditors[j]

        amount = min(debt_amount, cred_amount)
        if amount > tolerance:
            settlements.append(Settlement(from_user=debt_id, to_user=cred_id, amount=round(amount, 2)))

        debt_amount -= amount
        cred_amount -= amount
        debtors[i] = (debt_id, debt_amount)
        creditors[j] = (cred_id, cred_amount)

        if debt_amount < tolerance:
            i += 1
        if cred_amount < tolerance:
            j += 1

    return settlements


def apply_settlements(balances: Mapping[str, float], settlements: Iterable[Settlement]) -> dict[str, float]:
    after = dict(balances)
    for settlement in settlements:
        after[settlement.from_user] += settlement.amount
        after[settlement.to_user] -= settlement.amount
    return after


def verify_settlements(
    balances: Mapping[str, float],
    settlements: Iterable[Settlement],
    tolerance: float = TOLERANCE,
) -> None:
    after = apply_settlements(balances, settlements)
    unsettled = {user_id: value for user_id, value in after.items() if abs(value) > tolerance}
    if unsettled:
        raise SettlementResidueError(f"balances left unsettled: {unsettled}")
