import logging
import sqlite3
from utils.constants import DB_FILE

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and apply migrations."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        conn.commit()
        logger.debug("Database ready at %s", self.db_path)

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(recurring_transactions)").fetchall()}
        if "claimed_by" not in cols:
            conn.execute("ALTER TABLE recurring_transactions ADD COLUMN claimed_by TEXT")
        if "claimed_at" not in cols:
            conn.execute("ALTER TABLE recurring_transactions ADD COLUMN claimed_at TEXT")

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS recurring_transactions (
                id             TEXT PRIMARY KEY,
                owner_id       TEXT NOT NULL,
                type           TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount         TEXT NOT NULL CHECK(CAST(amount AS REAL) > 0),
                category       TEXT NOT NULL,
                description    TEXT,
                payment_method TEXT,
                frequency      TEXT NOT NULL CHECK(frequency IN ('daily','weekly','monthly','yearly')),
                next_run_date  TEXT NOT NULL,
                is_active      INTEGER NOT NULL DEFAULT 1,
                created_at     TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id             TEXT PRIMARY KEY,
                owner_id       TEXT NOT NULL,
                type           TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount         TEXT NOT NULL CHECK(CAST(amount AS REAL) > 0),
                category       TEXT NOT NULL,
                description    TEXT,
                payment_method TEXT,
                date           TEXT NOT NULL,
                source_rule_id TEXT REFERENCES recurring_transactions(id) ON DELETE SET NULL,
                is_recurring   INTEGER NOT NULL DEFAULT 0,
                created_at     TEXT NOT NULL DEFAULT (datetime('now')),
                UNIQUE(source_rule_id, date)
            );

            CREATE INDEX IF NOT EXISTS idx_recurring_due        ON recurring_transactions(is_active, next_run_date);
            CREATE INDEX IF NOT EXISTS idx_recurring_owner      ON recurring_transactions(owner_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_owner   ON transactions(owner_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date    ON transactions(date);
        """)

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
