from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class RecurrenceRule:
    id: str
    owner_id: str
    type: str               # 'income' | 'expense'
    amount: Decimal
    category: str
    frequency: str          # 'daily' | 'weekly' | 'monthly' | 'yearly'
    next_run_date: str      # 'YYYY-MM-DD'
    is_active: bool = True
    description: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
