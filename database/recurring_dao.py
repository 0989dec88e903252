from typing import Optional
from database.db_manager import DatabaseManager, db_operation
from models.recurring_rule import RecurringRule


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        return RecurringRule(
            id=row["id"],
            user_id=row["user_id"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            category_id=row["category_id"],
            type=row["type"],
            frequency=row["frequency"],
            next_due_date=row["next_due_date"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _select(self) -> str:
        return "SELECT * FROM recurring_rules r"

    @db_operation
    def list_rules(self, user_id: str) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE r.user_id = ? ORDER BY r.next_due_date, r.id",
            (user_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    @db_operation
    def list_active_rules(self, user_id: str) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select()
            + " WHERE r.user_id = ? AND r.is_active = 1 ORDER BY r.next_due_date, r.id",
            (user_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    @db_operation
    def get_by_id(self, user_id: str, rule_id: int) -> Optional[RecurringRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE r.user_id = ? AND r.id = ?", (user_id, rule_id)
        ).fetchone()
        return self._row_to_model(row) if row else None

    @db_operation
    def create(
        self,
        user_id: str,
        amount: float,
        description: str,
        category: str,
        type_: str,
        frequency: str,
        next_due_date: str,
        category_id: str | None = None,
        is_active: bool = True,
    ) -> RecurringRule:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO recurring_rules
               (user_id, amount, description, category, category_id, type,
                frequency, next_due_date, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                user_id, amount, description, category, category_id, type_,
                frequency, next_due_date, 1 if is_active else 0,
            ),
        )
        conn.commit()
        return self.get_by_id(user_id, cursor.lastrowid)

    @db_operation
    def update_rule(self, user_id: str, rule: RecurringRule) -> RecurringRule:
        """Full replace of the stored rule, cursor included."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE recurring_rules SET
               amount=?, description=?, category=?, category_id=?, type=?,
               frequency=?, next_due_date=?, is_active=?,
               updated_at=datetime('now')
               WHERE id=? AND user_id=?""",
            (
                rule.amount, rule.description, rule.category, rule.category_id,
                rule.type, rule.frequency, rule.next_due_date,
                1 if rule.is_active else 0, rule.id, user_id,
            ),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise LookupError(f"Recurring rule {rule.id} not found for user {user_id}")
        return self.get_by_id(user_id, rule.id)

    @db_operation
    def advance_cursor(
        self, user_id: str, rule_id: int, next_due_date: str
    ) -> Optional[RecurringRule]:
        """Move next_due_date forward only; other fields keep their stored values.

        Returns the stored rule afterwards (its cursor may already be further
        along than next_due_date), or None if the rule no longer exists.
        """
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_rules SET next_due_date = ?, updated_at = datetime('now')
               WHERE id = ? AND user_id = ? AND next_due_date < ?""",
            (next_due_date, rule_id, user_id, next_due_date),
        )
        conn.commit()
        return self.get_by_id(user_id, rule_id)

    @db_operation
    def set_active(self, user_id: str, rule_id: int, is_active: bool):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_rules SET is_active = ?, updated_at = datetime('now')
               WHERE id = ? AND user_id = ?""",
            (1 if is_active else 0, rule_id, user_id),
        )
        conn.commit()

    @db_operation
    def delete(self, user_id: str, rule_id: int):
        conn = self._db.get_connection()
        conn.execute(
            "DELETE FROM recurring_rules WHERE id = ? AND user_id = ?",
            (rule_id, user_id),
        )
        conn.commit()
