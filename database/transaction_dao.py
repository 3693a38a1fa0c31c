from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.date_helpers import now_str
from utils.money import from_money_str, to_money_str


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            owner_id=row["owner_id"],
            type=row["type"],
            amount=from_money_str(row["amount"]),
            category=row["category"],
            date=row["date"],
            description=row["description"],
            payment_method=row["payment_method"],
            source_rule_id=row["source_rule_id"],
            is_recurring=bool(row["is_recurring"]),
            created_at=row["created_at"],
        )

    def _select(self) -> str:
        return "SELECT * FROM transactions t"

    def insert_transaction(self, tx: Transaction) -> bool:
        """Insert tx. Returns False (and writes nothing) when a transaction for
        the same (source_rule_id, date) already exists."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (id, owner_id, type, amount, category, description,
                payment_method, date, source_rule_id, is_recurring, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(source_rule_id, date) DO NOTHING""",
            (
                tx.id, tx.owner_id, tx.type, to_money_str(tx.amount),
                tx.category, tx.description, tx.payment_method, tx.date,
                tx.source_rule_id, 1 if tx.is_recurring else 0,
                tx.created_at or now_str(),
            ),
        )
        conn.commit()
        return cursor.rowcount == 1

    def get_all(self) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY t.date ASC, t.id ASC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: str) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_rule(self, rule_id: str) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE t.source_rule_id = ? ORDER BY t.date ASC",
            (rule_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_owner(
        self,
        owner_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = self._select() + " WHERE t.owner_id = ?"
        params: list = [owner_id]

        if start_date:
            sql += " AND t.date >= ?"
            params.append(start_date)
        if end_date:
            sql += " AND t.date <= ?"
            params.append(end_date)

        sql += " ORDER BY t.date ASC, t.id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]
