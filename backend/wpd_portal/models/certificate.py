import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from wpd_portal.db.base import Base, utcnow


class IssueStatus(str, enum.Enum):
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class IssueStep(str, enum.Enum):
    RENDERED = "rendered"
    CONVERTED = "converted"
    STORED = "stored"
    LINKED = "linked"
    EMAILED = "emailed"


class CertificateIssue(Base):
    """One approval/certificate delivery attempt and how far it got."""

    __tablename__ = "certificate_issues"

    id = Column(Integer, primary_key=True, index=True)
    registrant_id = Column(Integer, ForeignKey("registrants.id", ondelete="CASCADE"), nullable=False, index=True)
    issued_by_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    first_approval = Column(Boolean, default=False, nullable=False)

    status = Column(String(16), default=IssueStatus.STARTED.value, nullable=False)
    last_step = Column(String(16), nullable=True)
    failed_step = Column(String(16), nullable=True)
    error_message = Column(Text, nullable=True)
    certificate_url = Column(String, nullable=True)

    started_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    registrant = relationship("Registrant", back_populates="certificate_issues")
