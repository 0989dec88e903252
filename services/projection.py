"""
Recurring-rule projection.

Walks a rule's next_due_date cursor forward one period at a time until it
passes `today`, collecting every date it stepped on. Each step is taken from
the previously produced date, so month-end clamping carries forward
(Jan 31 -> Feb 29 -> Mar 29 in 2024).

Nothing here reads the clock or touches storage; `today` is always passed in.
"""
from dataclasses import dataclass, field
from datetime import date
from models.recurring_rule import RecurringRule
from utils.date_helpers import (
    parse_date, to_calendar_date, is_on_or_before,
    add_days, add_weeks, add_months, add_years,
)


class MalformedRuleError(ValueError):
    """The rule's cursor or frequency cannot be projected."""


_STEPS = {
    "daily": lambda d: add_days(d, 1),
    "weekly": lambda d: add_weeks(d, 1),
    "monthly": lambda d: add_months(d, 1),
    "yearly": lambda d: add_years(d, 1),
}


@dataclass
class Projection:
    due_dates: list[date] = field(default_factory=list)
    new_cursor: date | None = None


def step(d: date, frequency: str) -> date:
    """Advance d by one period of `frequency`."""
    try:
        return _STEPS[frequency](d)
    except KeyError:
        raise MalformedRuleError(f"Unknown frequency: {frequency!r}") from None


def rule_cursor(rule: RecurringRule) -> date:
    cursor = parse_date(rule.next_due_date)
    if cursor is None:
        raise MalformedRuleError(
            f"Rule {rule.id} has an unparseable next_due_date: {rule.next_due_date!r}"
        )
    return cursor


def project(rule: RecurringRule, today) -> Projection:
    """Due dates from the rule's cursor up to and including `today`.

    Callers filter out inactive rules. `today` may be a date, a datetime
    (time of day is dropped) or an ISO string.
    """
    ref = to_calendar_date(today)
    cursor = rule_cursor(rule)
    if rule.frequency not in _STEPS:
        raise MalformedRuleError(f"Rule {rule.id} has unknown frequency {rule.frequency!r}")

    due_dates: list[date] = []
    while is_on_or_before(cursor, ref):
        due_dates.append(cursor)
        cursor = step(cursor, rule.frequency)
    return Projection(due_dates=due_dates, new_cursor=cursor)


def preview(rule: RecurringRule, until, limit: int | None = None) -> list[date]:
    """Occurrences from the cursor through `until`, without touching the rule.

    Used for reminders and forecasts; `limit` caps the list length.
    """
    end = to_calendar_date(until)
    cursor = rule_cursor(rule)
    step(cursor, rule.frequency)  # validates frequency
    result: list[date] = []
    while cursor <= end:
        if limit is not None and len(result) >= limit:
            break
        result.append(cursor)
        cursor = step(cursor, rule.frequency)
    return result
