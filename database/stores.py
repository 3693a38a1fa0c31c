"""Store interfaces the recurrence engine depends on.

The SQLite DAOs in this package implement them; any other backend can be
injected into RecurrenceEngine as long as it provides these methods.
"""
from datetime import date
from typing import Protocol

from models.recurring_rule import RecurrenceRule
from models.transaction import Transaction


class RuleStore(Protocol):
    def find_due_active_rules(self, as_of: date) -> list[RecurrenceRule]:
        """Active rules with next_run_date <= as_of, ordered by (next_run_date, id)."""
        ...

    def get_by_id(self, rule_id: str) -> RecurrenceRule | None:
        ...

    def update_next_run_date(self, rule_id: str, new_date: str, expected: str) -> None:
        """Move next_run_date from expected to new_date or raise ScheduleAdvanceError."""
        ...

    def claim(self, rule_id: str, run_id: str) -> bool:
        ...

    def release(self, rule_id: str, run_id: str) -> None:
        ...


class TransactionStore(Protocol):
    def insert_transaction(self, tx: Transaction) -> bool:
        """Write tx; return False when (source_rule_id, date) already exists."""
        ...
