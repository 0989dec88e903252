from dataclasses import dataclass
from typing import Optional


@dataclass
class RecurringRule:
    id: int
    user_id: str
    amount: float
    description: str
    category: str
    type: str               # 'expense' | 'income' | 'investment'
    frequency: str          # 'daily' | 'weekly' | 'monthly' | 'yearly'
    next_due_date: str      # 'YYYY-MM-DD', the cursor
    is_active: bool
    category_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
