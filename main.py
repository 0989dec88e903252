import argparse
import logging
import os
import sys
from dataclasses import dataclass

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager, PersistenceError
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from database.user_dao import UserDAO

from services.materializer import Materializer
from services.recurring_service import RecurringService
from services.transaction_service import TransactionService
from services.reminder_service import ReminderService
from services.daily_job import DailyRecurringJob, scheduled_entry

from utils.app_config import (
    get_db_path, get_admin_secret, get_timezone, get_run_timeout, get_log_level,
)
from utils.constants import APP_NAME
from utils.date_helpers import parse_date

logger = logging.getLogger(APP_NAME)


@dataclass
class AppContext:
    db: DatabaseManager
    user_dao: UserDAO
    recurring_dao: RecurringDAO
    tx_dao: TransactionDAO
    materializer: Materializer
    recurring_service: RecurringService
    transaction_service: TransactionService
    reminder_service: ReminderService
    daily_job: DailyRecurringJob


def bootstrap(db_path: str | None = None) -> AppContext:
    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open(db_path or get_db_path())

    # ── DAOs ─────────────────────────────────────────────────────────────────
    user_dao = UserDAO(db)
    recurring_dao = RecurringDAO(db)
    tx_dao = TransactionDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    materializer = Materializer(recurring_dao, tx_dao)
    recurring_svc = RecurringService(recurring_dao)
    tx_svc = TransactionService(tx_dao)
    reminder_svc = ReminderService(recurring_svc)
    daily_job = DailyRecurringJob(
        user_dao, recurring_dao, materializer, timeout_seconds=get_run_timeout()
    )

    return AppContext(
        db=db,
        user_dao=user_dao,
        recurring_dao=recurring_dao,
        tx_dao=tx_dao,
        materializer=materializer,
        recurring_service=recurring_svc,
        transaction_service=tx_svc,
        reminder_service=reminder_svc,
        daily_job=daily_job,
    )


def cmd_run_daily(ctx: AppContext, args) -> int:
    """Entry point for the external daily scheduler (cron at 00:00 local)."""
    try:
        if args.date:
            ref = parse_date(args.date)
            if ref is None:
                logger.error("Invalid --date %r, expected YYYY-MM-DD", args.date)
                return 2
            summary = ctx.daily_job.run(ref)
        else:
            summary = scheduled_entry(ctx.daily_job, get_timezone())
    except PersistenceError:
        logger.exception("Error processing recurring transactions")
        return 1
    ctx.db.set_setting("last_daily_run", summary.ref_date)
    print(
        f"{summary.ref_date}: {summary.users} users, {summary.processed} rules, "
        f"{summary.created} created, {summary.skipped} already present"
        + (" (timed out)" if summary.timed_out else "")
    )
    return 0


def cmd_serve(ctx: AppContext, args) -> int:
    import uvicorn
    from api.server import create_app

    if not get_admin_secret():
        logger.warning("ADMIN_SECRET is not set; the trigger endpoint will reject every call")
    app = create_app(ctx.daily_job, get_admin_secret(), get_timezone())
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def cmd_reconcile(ctx: AppContext, args) -> int:
    duplicates = ctx.transaction_service.find_generated_duplicates(args.user_id)
    if not duplicates:
        print("No duplicate recurring transactions.")
        return 0
    for dup in duplicates:
        ids = ", ".join(str(i) for i in dup["ids"])
        print(f"{dup['date']}  {dup['description']}  x{dup['count']}  (ids: {ids})")
    return 0


def cmd_add_user(ctx: AppContext, args) -> int:
    ctx.user_dao.ensure(args.user_id, name=args.name or "", email=args.email or "")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smartspend", description=f"{APP_NAME} recurring engine")
    parser.add_argument("--db", help="Path to the SQLite database")
    sub = parser.add_subparsers(dest="command", required=True)

    run_daily = sub.add_parser("run-daily", help="Materialize due recurring transactions for all users")
    run_daily.add_argument("--date", help="Override today (YYYY-MM-DD)")
    run_daily.set_defaults(func=cmd_run_daily)

    serve = sub.add_parser("serve", help="Serve the manual trigger endpoint")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    reconcile = sub.add_parser("reconcile", help="Report duplicated recurring transactions")
    reconcile.add_argument("user_id")
    reconcile.set_defaults(func=cmd_reconcile)

    add_user = sub.add_parser("add-user", help="Register a user id from the auth provider")
    add_user.add_argument("user_id")
    add_user.add_argument("--name")
    add_user.add_argument("--email")
    add_user.set_defaults(func=cmd_add_user)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx = bootstrap(args.db)
    try:
        return args.func(ctx, args)
    finally:
        ctx.db.close()


if __name__ == "__main__":
    sys.exit(main())
