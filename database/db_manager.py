import functools
import logging
import sqlite3
from utils.constants import DB_FILE

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A read or write against the store failed; safe to retry later."""


def db_operation(fn):
    """Re-raise sqlite3 errors from a DAO method as PersistenceError."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except sqlite3.Error as exc:
            raise PersistenceError(f"{fn.__qualname__} failed: {exc}") from exc
    return wrapper


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(transactions)").fetchall()}
        if "category_id" not in cols:
            conn.execute("ALTER TABLE transactions ADD COLUMN category_id TEXT")
        cols = {row[1] for row in conn.execute("PRAGMA table_info(recurring_rules)").fetchall()}
        if "category_id" not in cols:
            conn.execute("ALTER TABLE recurring_rules ADD COLUMN category_id TEXT")

    def _create_schema(self, conn: sqlite3.Connection):
        # frequency/next_due_date are validated by the projection engine, not here
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id         TEXT PRIMARY KEY,
                name       TEXT NOT NULL DEFAULT '',
                email      TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS recurring_rules (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id       TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                amount        REAL NOT NULL CHECK(amount > 0),
                description   TEXT NOT NULL,
                category      TEXT NOT NULL DEFAULT '',
                category_id   TEXT,
                type          TEXT NOT NULL CHECK(type IN ('expense','income','investment')),
                frequency     TEXT NOT NULL,
                next_due_date TEXT NOT NULL,
                is_active     INTEGER NOT NULL DEFAULT 1,
                created_at    TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at    TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                type        TEXT NOT NULL CHECK(type IN ('expense','income','investment')),
                amount      REAL NOT NULL CHECK(amount > 0),
                description TEXT NOT NULL DEFAULT '',
                date        TEXT NOT NULL,
                category    TEXT NOT NULL DEFAULT '',
                category_id TEXT,
                created_at  TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_rules_user_active     ON recurring_rules(user_id, is_active);
            CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("last_daily_run", ""),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    @db_operation
    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    @db_operation
    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open(db_path: str | None = None) -> "DatabaseManager":
        """Startup factory: open (creating if needed) and initialize the DB."""
        db = DatabaseManager(db_path)
        db.initialize()
        logger.debug("Opened database at %s", db.db_path)
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
