import logging
from dataclasses import dataclass, field
from datetime import date
from database.db_manager import PersistenceError
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.projection import project, step
from utils.constants import RECURRING_MARKER
from utils.date_helpers import format_date

logger = logging.getLogger(__name__)


@dataclass
class MaterializeResult:
    updated_rule: RecurringRule
    created: list[Transaction] = field(default_factory=list)
    skipped_dates: list[date] = field(default_factory=list)   # already materialized
    failed_dates: list[date] = field(default_factory=list)    # I/O failed, retried next run


def generated_description(rule: RecurringRule) -> str:
    return f"{rule.description} {RECURRING_MARKER}"


def is_generated_from(rule: RecurringRule, tx: Transaction) -> bool:
    # substring match: "Car Rent (Recurring)" also counts for a rule named "Rent"
    desc = tx.description or ""
    return RECURRING_MARKER in desc and rule.description in desc


class Materializer:
    """Turns a rule's due dates into transactions, at most one per date.

    Ordering is create-then-advance: the cursor only moves past a date once
    its transaction was created or found to exist already. The first date
    that fails pins the cursor there; later dates are still attempted and
    will be recognised as duplicates on the next run.
    """

    def __init__(self, recurring_dao: RecurringDAO, tx_dao: TransactionDAO):
        self._rules = recurring_dao
        self._tx = tx_dao

    def materialize(
        self,
        user_id: str,
        rule: RecurringRule,
        today,
        checkpoint_each_date: bool = False,
    ) -> MaterializeResult:
        """
        Materialize every due date of `rule` up to `today`.

        checkpoint_each_date=True persists the cursor after each settled date
        (unattended runs); otherwise it is written once after the batch.
        Raises MalformedRuleError before any I/O if the rule can't be projected.
        """
        projection = project(rule, today)
        result = MaterializeResult(updated_rule=rule)
        if not projection.due_dates:
            return result

        current = rule
        cursor_target: date | None = None
        blocked = False

        for due in projection.due_dates:
            date_str = format_date(due)
            try:
                existing = self._tx.list_transactions_on_date(user_id, date_str)
                if any(is_generated_from(rule, tx) for tx in existing):
                    result.skipped_dates.append(due)
                    logger.debug("Rule %s already materialized on %s", rule.id, date_str)
                else:
                    created = self._tx.create_transaction(user_id, self._build(user_id, rule, date_str))
                    result.created.append(created)
                    logger.info(
                        "Created recurring transaction '%s' on %s for user %s",
                        rule.description, date_str, user_id,
                    )
            except PersistenceError as exc:
                logger.warning(
                    "Rule %s for user %s: %s not materialized: %s",
                    rule.id, user_id, date_str, exc,
                )
                result.failed_dates.append(due)
                blocked = True
                continue

            if blocked:
                continue
            cursor_target = step(due, rule.frequency)
            if checkpoint_each_date:
                current = self._advance(user_id, current, cursor_target) or current

        if not checkpoint_each_date and cursor_target is not None:
            current = self._advance(user_id, current, cursor_target) or current

        result.updated_rule = current
        return result

    def _build(self, user_id: str, rule: RecurringRule, date_str: str) -> Transaction:
        return Transaction(
            id=None,
            user_id=user_id,
            type=rule.type,
            amount=rule.amount,
            description=generated_description(rule),
            date=date_str,
            category=rule.category,
            category_id=rule.category_id,
        )

    def _advance(self, user_id: str, rule: RecurringRule, cursor: date) -> RecurringRule | None:
        """Persist the new cursor; returns the stored rule, or None on failure."""
        target = format_date(cursor)
        try:
            stored = self._rules.advance_cursor(user_id, rule.id, target)
        except PersistenceError as exc:
            logger.warning(
                "Rule %s for user %s: cursor not advanced to %s: %s",
                rule.id, user_id, target, exc,
            )
            return None
        if stored is None:
            logger.warning("Rule %s for user %s was deleted during the run", rule.id, user_id)
        return stored
