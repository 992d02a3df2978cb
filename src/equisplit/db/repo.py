from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping, Optional

import asyncpg

from equisplit.db.models import Expense, Split, Tag, User
from equisplit.logging import get_logger, sql_logger
from equisplit.services.integrity import TOLERANCE, validate_expense
from equisplit.services.ledger import LedgerSnapshot


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg expects a plain postgresql:// scheme
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        pool = await self._ensure_pool()
        sql_logger.info("sql.fetch", query=query, args=args)
        return await pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._ensure_pool()
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await pool.fetchrow(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        pool = await self._ensure_pool()
        sql_logger.info("sql.execute", query=query, args=args)
        return await pool.execute(query, *args)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                sql_logger.info("sql.transaction.begin")
                yield conn

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        assert self._pool
        return self._pool


def _user_from_row(row: Mapping[str, Any]) -> User:
    return User(id=row["id"], name=row["name"], avatar=row["avatar"] or "")


def _expense_from_row(row: Mapping[str, Any], splits: list[Split]) -> Expense:
    return Expense(
        id=row["id"],
        description=row["description"],
        amount=float(row["amount"]),
        paid_by=row["paid_by"],
        tag=Tag(row["tag"]),
        date=row["date"],
        splits=splits,
        receipt_url=row["receipt_url"],
    )


class LedgerRepository:
    """Append/delete-only store of the group ledger."""

    def __init__(self, db: Database, tolerance: float = TOLERANCE) -> None:
        self.db = db
        self.tolerance = tolerance
        self._log = get_logger(__name__)

    async def ensure_user(self, user: User) -> None:
        await self.db.execute(
            """
            INSERT INTO users (id, name, avatar)
            VALUES ($1, $2, $3)
            ON CONFLICT (id) DO UPDATE
                SET name = EXCLUDED.name,
                    avatar = EXCLUDED.avatar
            """,
            user.id,
            user.name,
            user.avatar,
        )

    async def list_users(self) -> list[User]:
        rows = await self.db.fetch("SELECT id, name, avatar FROM users ORDER BY position, id")
        return [_user_from_row(row) for row in rows]

    async def add_expense(self, expense: Expense, users: Optional[Iterable[User]] = None) -> None:
        known = users if users is not None else await self.list_users()
        validate_expense(expense, {user.id for user in known}, self.tolerance)

        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO expenses (id, description, amount, paid_by, tag, date, receipt_url)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                """,
                expense.id,
                expense.description,
                expense.amount,
                expense.paid_by,
                expense.tag.value,
                expense.date,
                expense.receipt_url,
            )
            await conn.executemany(
                """
                INSERT INTO expense_splits (expense_id, user_id, position, weight, amount)
                VALUES ($1, $2, $3, $4, $5)
                """,
                [
                    (expense.id, split.user_id, position, split.weight, split.amount)
                    for position, split in enumerate(expense.splits)
                ],
            )
        self._log.info("ledger.expense.added", expense_id=expense.id, amount=expense.amount)

    async def get_expense(self, expense_id: str) -> Expense | None:
        row = await self.db.fetchrow("SELECT * FROM expenses WHERE id = $1", expense_id)
        if row is None:
            return None
        splits = await self._fetch_splits([expense_id])
        return _expense_from_row(row, splits.get(expense_id, []))

    async def delete_expense(self, expense_id: str) -> bool:
        status = await self.db.execute("DELETE FROM expenses WHERE id = $1", expense_id)
        deleted = status.endswith(" 1")
        self._log.info("ledger.expense.deleted", expense_id=expense_id, deleted=deleted)
        return deleted

    async def list_expenses(self) -> list[Expense]:
        rows = await self.db.fetch("SELECT * FROM expenses ORDER BY date DESC, id")
        splits = await self._fetch_splits([row["id"] for row in rows])
        return [_expense_from_row(row, splits.get(row["id"], [])) for row in rows]

    async def clear_expenses(self) -> None:
        await self.db.execute("DELETE FROM expenses")
        self._log.info("ledger.cleared")

    async def load_snapshot(self, *, strict: bool = False) -> LedgerSnapshot:
        users = await self.list_users()
        expenses = await self.list_expenses()
        return LedgerSnapshot(users, expenses, tolerance=self.tolerance, strict=strict)

    async def _fetch_splits(self, expense_ids: list[str]) -> dict[str, list[Split]]:
        if not expense_ids:
            return {}
        rows = await self.db.fetch(
            """
            SELECT expense_id, user_id, weight, amount
            FROM expense_splits
            WHERE expense_id = ANY($1::text[])
            ORDER BY expense_id, position
            """,
            expense_ids,
        )
        result: dict[str, list[Split]] = {}
        for row in rows:
            result.setdefault(row["expense_id"], []).append(
                Split(user_id=row["user_id"], weight=float(row["weight"]), amount=float(row["amount"]))
            )
        return result
