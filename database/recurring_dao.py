import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from database.db_manager import DatabaseManager
from models.recurring_rule import RecurrenceRule
from utils.constants import CLAIM_TTL_SECONDS, DATETIME_FORMAT
from utils.date_helpers import format_date, now_str, to_date
from utils.errors import ScheduleAdvanceError
from utils.money import from_money_str, to_money_str


class RecurringDAO:
    def __init__(self, db: DatabaseManager, claim_ttl: int = CLAIM_TTL_SECONDS):
        self._db = db
        self._claim_ttl = claim_ttl

    def _row_to_model(self, row) -> RecurrenceRule:
        return RecurrenceRule(
            id=row["id"],
            owner_id=row["owner_id"],
            type=row["type"],
            amount=from_money_str(row["amount"]),
            category=row["category"],
            frequency=row["frequency"],
            next_run_date=row["next_run_date"],
            is_active=bool(row["is_active"]),
            description=row["description"],
            payment_method=row["payment_method"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _normalize_date(self, value) -> str:
        """Store dates as YYYY-MM-DD so the due query can compare them as text."""
        parsed = to_date(value)
        if parsed is None:
            raise ValueError(f"Invalid next run date: {value!r}")
        return format_date(parsed)

    def _select(self) -> str:
        return "SELECT * FROM recurring_transactions r"

    def get_all(self, owner_id: str | None = None) -> list[RecurrenceRule]:
        conn = self._db.get_connection()
        if owner_id is None:
            rows = conn.execute(
                self._select() + " ORDER BY r.next_run_date, r.id"
            ).fetchall()
        else:
            rows = conn.execute(
                self._select() + " WHERE r.owner_id = ? ORDER BY r.next_run_date, r.id",
                (owner_id,),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurrenceRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE r.is_active = 1 ORDER BY r.next_run_date, r.id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: str) -> Optional[RecurrenceRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE r.id = ?", (rule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def find_due_active_rules(self, as_of: date) -> list[RecurrenceRule]:
        """Active rules whose next_run_date is on or before as_of."""
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + """
            WHERE r.is_active = 1
              AND r.next_run_date <= ?
            ORDER BY r.next_run_date ASC, r.id ASC
            """,
            (format_date(as_of),),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self,
        owner_id: str,
        type_: str,
        amount: Decimal,
        category: str,
        frequency: str,
        next_run_date: str,
        description: str | None = None,
        payment_method: str | None = None,
        is_active: bool = True,
    ) -> RecurrenceRule:
        next_run_date = self._normalize_date(next_run_date)
        rule_id = str(uuid.uuid4())
        stamp = now_str()
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO recurring_transactions
               (id, owner_id, type, amount, category, description,
                payment_method, frequency, next_run_date, is_active,
                created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                rule_id, owner_id, type_, to_money_str(amount), category,
                description, payment_method, frequency, next_run_date,
                1 if is_active else 0, stamp, stamp,
            ),
        )
        conn.commit()
        return self.get_by_id(rule_id)

    def update(
        self,
        rule_id: str,
        type_: str,
        amount: Decimal,
        category: str,
        frequency: str,
        next_run_date: str,
        description: str | None = None,
        payment_method: str | None = None,
        is_active: bool = True,
    ) -> Optional[RecurrenceRule]:
        next_run_date = self._normalize_date(next_run_date)
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_transactions SET
               type=?, amount=?, category=?, description=?, payment_method=?,
               frequency=?, next_run_date=?, is_active=?, updated_at=?
               WHERE id=?""",
            (
                type_, to_money_str(amount), category, description,
                payment_method, frequency, next_run_date,
                1 if is_active else 0, now_str(), rule_id,
            ),
        )
        conn.commit()
        return self.get_by_id(rule_id)

    def set_active(self, rule_id: str, is_active: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE recurring_transactions SET is_active = ?, updated_at = ? WHERE id = ?",
            (1 if is_active else 0, now_str(), rule_id),
        )
        conn.commit()

    def update_next_run_date(self, rule_id: str, new_date: str, expected: str):
        """Advance next_run_date, but only forward and only from the expected date.

        A concurrent edit or a second advance of the same occurrence leaves the
        row untouched and raises ScheduleAdvanceError.
        """
        if new_date <= expected:
            raise ScheduleAdvanceError(
                rule_id, f"next_run_date must increase ({expected} -> {new_date})"
            )
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE recurring_transactions
               SET next_run_date = ?, updated_at = ?
               WHERE id = ? AND next_run_date = ?""",
            (new_date, now_str(), rule_id, expected),
        )
        conn.commit()
        if cursor.rowcount != 1:
            raise ScheduleAdvanceError(
                rule_id, f"rule {rule_id} no longer due on {expected}"
            )

    def claim(self, rule_id: str, run_id: str) -> bool:
        """Take a lease on the rule for run_id. False if another live run holds it."""
        now = datetime.now()
        stale_before = (now - timedelta(seconds=self._claim_ttl)).strftime(DATETIME_FORMAT)
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE recurring_transactions
               SET claimed_by = ?, claimed_at = ?
               WHERE id = ?
                 AND (claimed_by IS NULL OR claimed_by = ? OR claimed_at < ?)""",
            (run_id, now.strftime(DATETIME_FORMAT), rule_id, run_id, stale_before),
        )
        conn.commit()
        return cursor.rowcount == 1

    def release(self, rule_id: str, run_id: str):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_transactions
               SET claimed_by = NULL, claimed_at = NULL
               WHERE id = ? AND claimed_by = ?""",
            (rule_id, run_id),
        )
        conn.commit()

    def delete(self, rule_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM recurring_transactions WHERE id = ?", (rule_id,))
        conn.commit()
