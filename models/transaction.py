import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from models.recurring_rule import RecurrenceRule


@dataclass(frozen=True)
class Transaction:
    id: str
    owner_id: str
    type: str               # 'income' | 'expense'
    amount: Decimal
    category: str
    date: str               # 'YYYY-MM-DD'
    description: Optional[str] = None
    payment_method: Optional[str] = None
    source_rule_id: Optional[str] = None
    is_recurring: bool = False
    created_at: str = ""

    @classmethod
    def from_rule(cls, rule: RecurrenceRule) -> "Transaction":
        """Materialize the rule's current due occurrence."""
        return cls(
            id=str(uuid.uuid4()),
            owner_id=rule.owner_id,
            type=rule.type,
            amount=rule.amount,
            category=rule.category,
            date=rule.next_run_date,
            description=rule.description,
            payment_method=rule.payment_method,
            source_rule_id=rule.id,
            is_recurring=True,
        )
