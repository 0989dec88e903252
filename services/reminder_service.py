import logging
from dataclasses import dataclass
from datetime import date
from services.recurring_service import RecurringService
from utils.currency import format_currency
from utils.date_helpers import today, parse_date, days_until
from utils.constants import UPCOMING_BILLS_LIMIT, URGENT_BILL_DAYS

logger = logging.getLogger(__name__)


@dataclass
class Reminder:
    rule_id: int
    title: str
    detail: str
    due_date: date
    days_away: int
    urgent: bool = False


def day_label(days_away: int) -> str:
    if days_away < 0:
        n = -days_away
        return f"{n} day{'s' if n != 1 else ''} overdue"
    if days_away == 0:
        return "today"
    if days_away == 1:
        return "tomorrow"
    return f"in {days_away} days"


class ReminderService:
    def __init__(self, recurring_service: RecurringService):
        self._recurring = recurring_service

    def get_upcoming_bills(
        self,
        user_id: str,
        ref_date: date | None = None,
        limit: int = UPCOMING_BILLS_LIMIT,
    ) -> list[Reminder]:
        """The next `limit` active rules by due date, soonest first."""
        ref = ref_date or today()
        dated = []
        for rule in self._recurring.list_active(user_id):
            due = parse_date(rule.next_due_date)
            if due is None:
                logger.warning("Rule %s has no usable due date; not shown", rule.id)
                continue
            dated.append((due, rule))
        dated.sort(key=lambda pair: (pair[0], pair[1].id))

        reminders = []
        for due, rule in dated[:limit]:
            days_away = days_until(due, ref)
            reminders.append(Reminder(
                rule_id=rule.id,
                title=f"{rule.description} due {day_label(days_away)}",
                detail=(
                    f"Due on {due.strftime('%d %b')} · "
                    f"{format_currency(rule.amount)} · {rule.category}"
                ),
                due_date=due,
                days_away=days_away,
                urgent=0 <= days_away <= URGENT_BILL_DAYS,
            ))
        return reminders
