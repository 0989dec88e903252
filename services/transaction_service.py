from models.transaction import Transaction
from database.transaction_dao import TransactionDAO
from utils.constants import RECURRING_MARKER, TRANSACTION_TYPES
from utils.date_helpers import parse_date, format_date


class TransactionService:
    def __init__(self, tx_dao: TransactionDAO):
        self._dao = tx_dao

    def list_for_user(self, user_id: str, month: str | None = None) -> list[Transaction]:
        return self._dao.list_for_user(user_id, month)

    def list_on_date(self, user_id: str, date: str) -> list[Transaction]:
        return self._dao.list_transactions_on_date(user_id, date)

    def create(
        self,
        user_id: str,
        amount: float,
        description: str,
        date: str,
        category: str,
        type_: str,
        category_id: str | None = None,
    ) -> Transaction:
        self._validate(type_, amount, date)
        return self._dao.create_transaction(user_id, Transaction(
            id=None,
            user_id=user_id,
            type=type_,
            amount=amount,
            description=description,
            date=format_date(parse_date(date)),
            category=category,
            category_id=category_id,
        ))

    def update(self, user_id: str, tx: Transaction) -> Transaction:
        self._validate(tx.type, tx.amount, tx.date)
        return self._dao.update(user_id, tx)

    def delete(self, user_id: str, tx_id: int):
        self._dao.delete(user_id, tx_id)

    def find_generated_duplicates(self, user_id: str) -> list[dict]:
        """Generated transactions that share a date and description.

        Two triggers can race past the duplicate check for the same date;
        this is the report that flags the result. Nothing is merged.
        """
        return self._dao.find_repeated(user_id, RECURRING_MARKER)

    def _validate(self, type_: str, amount: float, date: str):
        if type_ not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid type: {type_}")
        if amount is None or amount <= 0:
            raise ValueError("Amount must be positive.")
        if not parse_date(date):
            raise ValueError("Invalid date format. Use YYYY-MM-DD.")
