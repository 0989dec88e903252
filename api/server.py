"""HTTP surface for the unattended recurring run, over FastAPI."""
import hmac
import logging
from datetime import date
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from services.daily_job import DailyRecurringJob
from utils.date_helpers import today_in

logger = logging.getLogger(__name__)


class TriggerResponse(BaseModel):
    success: bool
    createdTransactions: int
    processed: int
    timedOut: bool


class HealthResponse(BaseModel):
    status: str


def _token_matches(authorization: Optional[str], secret: Optional[str]) -> bool:
    if not secret or not authorization:
        return False
    return hmac.compare_digest(
        authorization.encode("utf-8"), f"Bearer {secret}".encode("utf-8")
    )


def create_app(
    job: DailyRecurringJob,
    admin_secret: Optional[str],
    tz_name: str,
    clock: Optional[Callable[[], date]] = None,
) -> FastAPI:
    app = FastAPI(title="SmartSpend Recurring", version="0.1.0")
    current_date = clock or (lambda: today_in(tz_name))

    def require_admin(authorization: Optional[str] = Header(default=None)):
        if not _token_matches(authorization, admin_secret):
            raise HTTPException(status_code=401, detail="Unauthorized")

    @app.post(
        "/recurring/trigger",
        response_model=TriggerResponse,
        dependencies=[Depends(require_admin)],
    )
    def trigger_recurring():
        try:
            summary = job.run(current_date())
        except Exception:
            logger.exception("Error in manual recurring trigger")
            raise HTTPException(status_code=500, detail="Internal server error")
        return TriggerResponse(
            success=True,
            createdTransactions=summary.created,
            processed=summary.processed,
            timedOut=summary.timed_out,
        )

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok")

    return app
