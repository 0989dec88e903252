"""
Interactive (client-session) trigger for recurring materialization.

A signed-in session keeps the user's rules in memory. Whenever that rule set
changes (session load, or any add/edit/toggle/delete), every active rule is
materialized up to today, one rule at a time. Routine failures are only
logged: an unprocessed date stays due and is picked up by the next trigger.
"""
import logging
from datetime import date
from typing import Callable
from database.db_manager import PersistenceError
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.materializer import Materializer
from services.projection import MalformedRuleError
from services.recurring_service import RecurringService
from services.transaction_service import TransactionService
from utils.date_helpers import today

logger = logging.getLogger(__name__)

ADD_TRANSACTION_FAILED = "Failed to add transaction. Please try again."


class InteractiveTrigger:
    def __init__(self, user_id: str, materializer: Materializer):
        self.user_id = user_id
        self._materializer = materializer
        self._rules: dict[int, RecurringRule] = {}

    @property
    def rules(self) -> list[RecurringRule]:
        return list(self._rules.values())

    def on_rules_changed(self, rules: list[RecurringRule], ref_date: date) -> list[Transaction]:
        """Replace the cached rule set, then catch every active rule up."""
        self._rules = {r.id: r for r in rules}
        return self.run(ref_date)

    def run(self, ref_date: date) -> list[Transaction]:
        created: list[Transaction] = []
        for rule in [r for r in self._rules.values() if r.is_active]:
            try:
                result = self._materializer.materialize(self.user_id, rule, ref_date)
            except MalformedRuleError as exc:
                logger.warning("Skipping recurring rule %s: %s", rule.id, exc)
                continue
            self._rules[rule.id] = result.updated_rule
            created.extend(result.created)
        if created:
            logger.info("Created %d recurring transactions for user %s", len(created), self.user_id)
        return created


class ClientSession:
    """Wires an InteractiveTrigger to rule mutations for one signed-in user."""

    def __init__(
        self,
        user_id: str,
        recurring_service: RecurringService,
        transaction_service: TransactionService,
        materializer: Materializer,
        on_error: Callable[[str], None] | None = None,
        clock: Callable[[], date] = today,
    ):
        self.user_id = user_id
        self._recurring = recurring_service
        self._tx = transaction_service
        self._trigger = InteractiveTrigger(user_id, materializer)
        self._on_error = on_error
        self._clock = clock
        self._unsubscribe: Callable[[], None] | None = None
        self.created: list[Transaction] = []

    @property
    def rules(self) -> list[RecurringRule]:
        return self._trigger.rules

    def start(self) -> list[Transaction]:
        """Load the user's rules, run once, and follow later rule changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self._recurring.subscribe(self._on_rule_mutation)
        return self._refresh()

    def close(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def add_transaction(
        self,
        amount: float,
        description: str,
        date: str,
        category: str,
        type_: str,
        category_id: str | None = None,
    ) -> Transaction | None:
        """Manual entry. Failures here are shown to the user."""
        try:
            return self._tx.create(
                self.user_id, amount, description, date, category, type_, category_id
            )
        except (ValueError, PersistenceError) as exc:
            logger.error("Error adding transaction for user %s: %s", self.user_id, exc)
            if self._on_error:
                self._on_error(ADD_TRANSACTION_FAILED)
            return None

    def _on_rule_mutation(self, user_id: str):
        if user_id == self.user_id:
            self._refresh()

    def _refresh(self) -> list[Transaction]:
        try:
            rules = self._recurring.list_rules(self.user_id)
        except PersistenceError as exc:
            logger.warning("Could not load recurring rules for user %s: %s", self.user_id, exc)
            return []
        created = self._trigger.on_rules_changed(rules, self._clock())
        self.created.extend(created)
        return created
