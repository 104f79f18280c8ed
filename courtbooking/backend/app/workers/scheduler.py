import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import get_settings
from ..core.constants import EXPIRY_JOB_INTERVAL
from ..db.session import SessionLocal
from ..services import booking_service, table_service

logger = logging.getLogger(__name__)


def expire_overdue_bookings(session_factory=SessionLocal) -> dict:
    """Expire pending court bookings for past days and stale table reservations."""
    settings = get_settings()
    with session_factory() as db:
        courts = booking_service.expire_overdue(db)
        tables = table_service.expire_overdue(db, settings.table_reservation_grace_min)
    if courts or tables:
        logger.info("Expired overdue bookings", extra={"court_bookings": courts, "table_reservations": tables})
    return {"court_bookings": courts, "table_reservations": tables}


def get_scheduler() -> AsyncIOScheduler:
    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_job(
        expire_overdue_bookings,
        "interval",
        minutes=int(EXPIRY_JOB_INTERVAL.total_seconds() // 60),
        id="expire_overdue_bookings",
    )
    return scheduler
