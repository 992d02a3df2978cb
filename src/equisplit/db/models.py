from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Tag(str, Enum):
    FOOD = "food"
    TRAVEL = "travel"
    SHARED = "shared"
    PERSONAL = "personal"
    HOUSING = "housing"
    ENTERTAINMENT = "entertainment"


@dataclass(slots=True)
class User:
    id: str
    name: str
    avatar: str = ""


@dataclass(slots=True)
class Split:
    user_id: str
    weight: float
    amount: float


@dataclass(slots=True)
class Expense:
    id: str
    description: str
    amount: float
    paid_by: str
    tag: Tag
    date: datetime
    splits: list[Split] = field(default_factory=list)
    receipt_url: Optional[str] = None
