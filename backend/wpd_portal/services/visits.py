import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wpd_portal.core.errors import ValidationFailed
from wpd_portal.models.visit import Visit

logger = logging.getLogger(__name__)


def today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def parse_day(value: Optional[str]) -> str:
    if not value:
        raise ValidationFailed("Date parameter is required.")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValidationFailed("Date parameter must be in YYYY-MM-DD format.")


class VisitService:
    def __init__(self, db: Session):
        self.db = db

    def record_visit(self, visitor_id: Optional[str], today: Optional[str] = None) -> bool:
        """
        Upsert the (visitor, day) row. Returns False when a concurrent request
        already recorded this visitor today.
        """
        visitor_id = (visitor_id or "").strip()
        if not visitor_id:
            raise ValidationFailed("visitorId is required")

        day = today or today_utc()
        now = datetime.now(timezone.utc)

        visit = (
            self.db.query(Visit)
            .filter(Visit.visitor_id == visitor_id, Visit.date_visited == day)
            .first()
        )
        if visit:
            visit.timestamp = now
        else:
            self.db.add(Visit(visitor_id=visitor_id, date_visited=day, timestamp=now))

        try:
            self.db.commit()
        except IntegrityError:
            # unique (visitor_id, date_visited): someone else inserted first
            self.db.rollback()
            logger.info(f"Visit already tracked for {visitor_id} on {day}")
            return False
        return True

    def total_unique_visitors(self) -> int:
        return self.db.query(func.count(distinct(Visit.visitor_id))).scalar() or 0

    def unique_visitors_on(self, day: str) -> int:
        return self.db.query(func.count(Visit.id)).filter(Visit.date_visited == day).scalar() or 0

    def summary(self, today: Optional[str] = None) -> dict:
        return {
            "total_unique_visitors": self.total_unique_visitors(),
            "unique_visitors_today": self.unique_visitors_on(today or today_utc()),
        }
