import pytest

from database.db_manager import DatabaseManager, PersistenceError
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from database.user_dao import UserDAO
from services.materializer import Materializer
from services.recurring_service import RecurringService
from services.transaction_service import TransactionService


class FlakyTransactionDAO(TransactionDAO):
    """Fails create_transaction for the listed dates."""

    def __init__(self, db, fail_dates=()):
        super().__init__(db)
        self.fail_dates = set(fail_dates)

    def create_transaction(self, user_id, tx):
        if tx.date in self.fail_dates:
            raise PersistenceError(f"simulated outage on {tx.date}")
        return super().create_transaction(user_id, tx)


class CountingRecurringDAO(RecurringDAO):
    def __init__(self, db):
        super().__init__(db)
        self.updates = []

    def advance_cursor(self, user_id, rule_id, next_due_date):
        self.updates.append(next_due_date)
        return super().advance_cursor(user_id, rule_id, next_due_date)


@pytest.fixture
def db():
    manager = DatabaseManager.open(":memory:")
    yield manager
    manager.close()


@pytest.fixture
def user_dao(db):
    dao = UserDAO(db)
    dao.ensure("u1", name="Asha")
    dao.ensure("u2", name="Ravi")
    return dao


@pytest.fixture
def recurring_dao(db, user_dao):
    return CountingRecurringDAO(db)


@pytest.fixture
def tx_dao(db, user_dao):
    return TransactionDAO(db)


@pytest.fixture
def materializer(recurring_dao, tx_dao):
    return Materializer(recurring_dao, tx_dao)


@pytest.fixture
def recurring_service(recurring_dao):
    return RecurringService(recurring_dao)


@pytest.fixture
def tx_service(tx_dao):
    return TransactionService(tx_dao)


@pytest.fixture
def make_rule(recurring_dao):
    def _make(
        user_id="u1",
        amount=50.0,
        description="Gym",
        category="Health",
        type_="expense",
        frequency="daily",
        next_due_date="2024-06-01",
        is_active=True,
        category_id="cat-health",
    ):
        return recurring_dao.create(
            user_id=user_id, amount=amount, description=description,
            category=category, type_=type_, frequency=frequency,
            next_due_date=next_due_date, category_id=category_id,
            is_active=is_active,
        )
    return _make
