import main
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO


def test_run_daily_with_explicit_date(tmp_path, capsys):
    db_path = str(tmp_path / "smartspend.db")
    assert main.main(["--db", db_path, "add-user", "u1"]) == 0

    db = DatabaseManager.open(db_path)
    RecurringDAO(db).create(
        user_id="u1", amount=50.0, description="Gym", category="Health",
        type_="expense", frequency="daily", next_due_date="2024-06-01",
    )
    db.close()

    assert main.main(["--db", db_path, "run-daily", "--date", "2024-06-04"]) == 0
    assert "4 created" in capsys.readouterr().out

    db = DatabaseManager.open(db_path)
    assert len(TransactionDAO(db).list_for_user("u1")) == 4
    assert db.get_setting("last_daily_run") == "2024-06-04"
    db.close()


def test_run_daily_rejects_bad_date(tmp_path):
    db_path = str(tmp_path / "smartspend.db")
    assert main.main(["--db", db_path, "run-daily", "--date", "4 June"]) == 2


def test_reconcile_reports_clean_user(tmp_path, capsys):
    db_path = str(tmp_path / "smartspend.db")
    assert main.main(["--db", db_path, "reconcile", "u1"]) == 0
    assert "No duplicate" in capsys.readouterr().out
