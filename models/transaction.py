from dataclasses import dataclass
from typing import Optional


@dataclass
class Transaction:
    id: Optional[int]
    user_id: str
    type: str               # 'expense' | 'income' | 'investment'
    amount: float
    description: str
    date: str               # 'YYYY-MM-DD'
    category: str
    category_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
