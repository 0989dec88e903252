from database.db_manager import DatabaseManager, db_operation


class UserDAO:
    """Users are created by the auth provider; we only mirror their ids."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    @db_operation
    def ensure(self, user_id: str, name: str = "", email: str = "") -> None:
        conn = self._db.get_connection()
        conn.execute(
            "INSERT OR IGNORE INTO users(id, name, email) VALUES (?, ?, ?)",
            (user_id, name, email),
        )
        conn.commit()

    @db_operation
    def list_all_users(self) -> list[str]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT id FROM users ORDER BY id").fetchall()
        return [r["id"] for r in rows]
