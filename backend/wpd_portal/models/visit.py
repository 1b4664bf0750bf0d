from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from wpd_portal.db.base import Base, utcnow


class Visit(Base):
    __tablename__ = "visits"
    # One row per visitor per calendar day
    __table_args__ = (
        UniqueConstraint("visitor_id", "date_visited", name="uq_visit_visitor_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    visitor_id = Column(String(128), nullable=False, index=True)
    date_visited = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD (UTC)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
