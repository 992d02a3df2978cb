from __future__ import annotations

import asyncio

from equisplit.config import Settings, get_settings
from equisplit.db.repo import Database, LedgerRepository
from equisplit.logging import configure_logging, get_logger
from equisplit.services.ledger import LedgerSnapshot
from equisplit.services.summary import (
    format_balance_summary,
    format_fairness_summary,
    format_settlement_lines,
    format_settlement_narration,
)


def build_report(snapshot: LedgerSnapshot, currency: str = "$") -> str:
    sections = [
        format_balance_summary(snapshot.balances, snapshot.users, currency),
        format_settlement_lines(snapshot.settlements, snapshot.users, currency),
        format_fairness_summary(snapshot.fairness, snapshot.users, currency),
    ]
    narration = format_settlement_narration(snapshot.settlements, snapshot.users, currency)
    if narration:
        sections.append(narration)
    return "\n\n".join(sections)


async def run(settings: Settings) -> str:
    log = get_logger(__name__)
    db = Database(settings.database_url)
    await db.connect()
    try:
        repo = LedgerRepository(db, tolerance=settings.settlement_tolerance)
        snapshot = await repo.load_snapshot(strict=settings.strict_settlement)
        log.info(
            "report.ledger.loaded",
            users=len(snapshot.users),
            expenses=len(snapshot.expenses),
            settlements=len(snapshot.settlements),
        )
        return build_report(snapshot, settings.currency_symbol)
    finally:
        await db.close()


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    log = get_logger(__name__)
    log.info("report.start")
    print(asyncio.run(run(settings)))
    log.info("report.stop")


if __name__ == "__main__":
    main()
