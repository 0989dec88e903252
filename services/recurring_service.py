import dataclasses
import logging
from typing import Callable
from datetime import date
from models.recurring_rule import RecurringRule
from database.recurring_dao import RecurringDAO
from services.projection import preview
from utils.date_helpers import parse_date
from utils.constants import FREQUENCIES, TRANSACTION_TYPES

logger = logging.getLogger(__name__)


class RecurringService:
    """User-facing management of recurring rules.

    Every mutation notifies subscribers with the affected user id; the
    interactive trigger listens here to re-run materialization.
    """

    def __init__(self, recurring_dao: RecurringDAO):
        self._dao = recurring_dao
        self._listeners: list[Callable[[str], None]] = []

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register callback(user_id); returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _notify(self, user_id: str):
        for callback in list(self._listeners):
            callback(user_id)

    def list_rules(self, user_id: str) -> list[RecurringRule]:
        return self._dao.list_rules(user_id)

    def list_active(self, user_id: str) -> list[RecurringRule]:
        return self._dao.list_active_rules(user_id)

    def get(self, user_id: str, rule_id: int) -> RecurringRule | None:
        return self._dao.get_by_id(user_id, rule_id)

    def create(
        self,
        user_id: str,
        amount: float,
        description: str,
        category: str,
        type_: str,
        frequency: str,
        start_date: str,
        category_id: str | None = None,
    ) -> RecurringRule:
        self._validate(amount, description, type_, frequency, start_date)
        rule = self._dao.create(
            user_id=user_id, amount=amount, description=description.strip(),
            category=category, type_=type_, frequency=frequency,
            next_due_date=start_date, category_id=category_id,
        )
        logger.info("User %s added recurring rule %s (%s)", user_id, rule.id, rule.description)
        self._notify(user_id)
        return rule

    def update(
        self,
        user_id: str,
        rule_id: int,
        amount: float,
        description: str,
        category: str,
        type_: str,
        frequency: str,
        next_due_date: str,
        category_id: str | None = None,
        is_active: bool = True,
    ) -> RecurringRule:
        self._validate(amount, description, type_, frequency, next_due_date)
        existing = self._require(user_id, rule_id)
        stored_cursor = parse_date(existing.next_due_date)
        if stored_cursor and parse_date(next_due_date) < stored_cursor:
            raise ValueError("Next due date cannot be moved earlier.")
        rule = self._dao.update_rule(user_id, dataclasses.replace(
            existing,
            amount=amount, description=description.strip(), category=category,
            category_id=category_id, type=type_, frequency=frequency,
            next_due_date=next_due_date, is_active=is_active,
        ))
        self._notify(user_id)
        return rule

    def set_active(self, user_id: str, rule_id: int, is_active: bool):
        self._require(user_id, rule_id)
        self._dao.set_active(user_id, rule_id, is_active)
        self._notify(user_id)

    def toggle(self, user_id: str, rule_id: int) -> bool:
        """Flip is_active; returns the new value."""
        rule = self._require(user_id, rule_id)
        self.set_active(user_id, rule_id, not rule.is_active)
        return not rule.is_active

    def delete(self, user_id: str, rule_id: int):
        self._dao.delete(user_id, rule_id)
        self._notify(user_id)

    def upcoming_occurrences(self, user_id: str, until: date) -> list[dict]:
        """
        Return [{date, rule_id, description, amount, type}] for every active
        rule occurrence from its cursor through `until`, ordered by date.
        Rules whose data can't be projected are left out.
        """
        result = []
        for rule in self._dao.list_active_rules(user_id):
            try:
                dates = preview(rule, until)
            except ValueError:
                logger.warning("Skipping malformed rule %s in forecast", rule.id)
                continue
            for d in dates:
                result.append({
                    "date": d, "rule_id": rule.id, "description": rule.description,
                    "amount": rule.amount, "type": rule.type,
                })
        result.sort(key=lambda o: (o["date"], o["rule_id"]))
        return result

    def _require(self, user_id: str, rule_id: int) -> RecurringRule:
        rule = self._dao.get_by_id(user_id, rule_id)
        if rule is None:
            raise ValueError(f"Recurring rule {rule_id} not found.")
        return rule

    def _validate(self, amount, description, type_, frequency, start_date):
        if not description or not description.strip():
            raise ValueError("Description cannot be empty.")
        if type_ not in TRANSACTION_TYPES:
            raise ValueError("Type must be expense, income or investment.")
        if amount is None or amount <= 0:
            raise ValueError("Amount must be positive.")
        if frequency not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        if not parse_date(start_date):
            raise ValueError("Invalid start date.")
