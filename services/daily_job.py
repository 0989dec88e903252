"""
Unattended daily run across every user.

An external scheduler calls `scheduled_entry` once a day (00:00 in the
configured time zone). Users and their active rules are processed strictly
in sequence, checkpointing each rule's cursor after every settled date. The
run has a hard wall-clock ceiling; users not reached before it expires are
caught up by the next run, since each user's cursors are consistent on
their own.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable
from database.db_manager import PersistenceError
from database.recurring_dao import RecurringDAO
from database.user_dao import UserDAO
from services.materializer import Materializer
from services.projection import MalformedRuleError
from utils.constants import DAILY_RUN_TIMEOUT_SECONDS
from utils.date_helpers import today_in, format_date

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    ref_date: str
    users: int = 0
    processed: int = 0
    created: int = 0
    skipped: int = 0
    failed_rules: list[int] = field(default_factory=list)
    timed_out: bool = False


class DailyRecurringJob:
    def __init__(
        self,
        user_dao: UserDAO,
        recurring_dao: RecurringDAO,
        materializer: Materializer,
        timeout_seconds: float = DAILY_RUN_TIMEOUT_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._users = user_dao
        self._rules = recurring_dao
        self._materializer = materializer
        self._timeout = timeout_seconds
        self._monotonic = monotonic

    def run(self, ref_date: date) -> RunSummary:
        summary = RunSummary(ref_date=format_date(ref_date))
        deadline = self._monotonic() + self._timeout
        logger.info("Processing recurring transactions for %s", summary.ref_date)

        for user_id in self._users.list_all_users():
            if self._monotonic() >= deadline:
                summary.timed_out = True
                break
            summary.users += 1
            try:
                rules = self._rules.list_active_rules(user_id)
            except PersistenceError as exc:
                logger.warning("Could not load rules for user %s: %s", user_id, exc)
                continue

            for rule in rules:
                if self._monotonic() >= deadline:
                    summary.timed_out = True
                    break
                self._run_rule(user_id, rule, ref_date, summary)
            if summary.timed_out:
                break

        if summary.timed_out:
            logger.warning(
                "Daily run hit its %.0fs ceiling after %d users; the rest wait for the next run",
                self._timeout, summary.users,
            )
        logger.info(
            "Processed %d recurring items, created %d transactions",
            summary.processed, summary.created,
        )
        return summary

    def _run_rule(self, user_id: str, rule, ref_date: date, summary: RunSummary):
        try:
            result = self._materializer.materialize(
                user_id, rule, ref_date, checkpoint_each_date=True
            )
        except MalformedRuleError as exc:
            logger.warning("Skipping recurring rule %s for user %s: %s", rule.id, user_id, exc)
            summary.failed_rules.append(rule.id)
            return
        summary.processed += 1
        summary.created += len(result.created)
        summary.skipped += len(result.skipped_dates)
        if result.failed_dates:
            summary.failed_rules.append(rule.id)


def scheduled_entry(job: DailyRecurringJob, tz_name: str) -> RunSummary:
    """Run the job for today's date in `tz_name`."""
    return job.run(today_in(tz_name))
