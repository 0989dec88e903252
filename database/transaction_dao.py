from typing import Optional
from database.db_manager import DatabaseManager, db_operation
from models.transaction import Transaction


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            amount=row["amount"],
            description=row["description"],
            date=row["date"],
            category=row["category"],
            category_id=row["category_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _select(self) -> str:
        return "SELECT * FROM transactions t"

    @db_operation
    def list_for_user(self, user_id: str, month: str | None = None) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = self._select() + " WHERE t.user_id = ?"
        params: list = [user_id]
        if month:
            sql += " AND strftime('%Y-%m', t.date) = ?"
            params.append(month)
        sql += " ORDER BY t.date ASC, t.id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    @db_operation
    def list_transactions_on_date(self, user_id: str, date: str) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE t.user_id = ? AND t.date = ? ORDER BY t.id",
            (user_id, date),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    @db_operation
    def get_by_id(self, user_id: str, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.user_id = ? AND t.id = ?", (user_id, tx_id)
        ).fetchone()
        return self._row_to_model(row) if row else None

    @db_operation
    def create_transaction(self, user_id: str, tx: Transaction) -> Transaction:
        """Insert tx for user_id; the stored row (with its new id) is returned."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (user_id, type, amount, description, date, category, category_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                user_id, tx.type, tx.amount, tx.description, tx.date,
                tx.category, tx.category_id,
            ),
        )
        conn.commit()
        return self.get_by_id(user_id, cursor.lastrowid)

    @db_operation
    def update(self, user_id: str, tx: Transaction) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET type=?, amount=?, description=?, date=?, category=?,
                   category_id=?, updated_at=datetime('now')
               WHERE id=? AND user_id=?""",
            (tx.type, tx.amount, tx.description, tx.date, tx.category,
             tx.category_id, tx.id, user_id),
        )
        conn.commit()
        return self.get_by_id(user_id, tx.id)

    @db_operation
    def delete(self, user_id: str, tx_id: int):
        conn = self._db.get_connection()
        conn.execute(
            "DELETE FROM transactions WHERE id = ? AND user_id = ?", (tx_id, user_id)
        )
        conn.commit()

    @db_operation
    def find_repeated(self, user_id: str, description_suffix: str) -> list[dict]:
        """Return [{date, description, count, ids}] for (date, description)
        pairs that occur more than once among descriptions ending in the suffix."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT date, description, COUNT(*) AS count,
                      GROUP_CONCAT(id) AS ids
               FROM transactions
               WHERE user_id = ?
                 AND description LIKE '%' || ?
               GROUP BY date, description
               HAVING COUNT(*) > 1
               ORDER BY date, description""",
            (user_id, description_suffix),
        ).fetchall()
        return [
            {
                "date": r["date"],
                "description": r["description"],
                "count": r["count"],
                "ids": sorted(int(i) for i in r["ids"].split(",")),
            }
            for r in rows
        ]
