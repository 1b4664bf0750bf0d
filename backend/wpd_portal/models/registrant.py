import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from wpd_portal.db.base import Base, BaseModel


class Annotation(str, enum.Enum):
    MR = "Mr"
    MRS = "Mrs"
    MS = "Ms"
    DR = "Dr"
    DR_HC = "Dr.HC"


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Registrant(Base, BaseModel):
    __tablename__ = "registrants"

    # Profile
    annotation = Column(String(8), nullable=False, default=Annotation.MR.value)
    name = Column(String(200), nullable=False)
    company_name = Column(String(200), nullable=True)
    email = Column(String(254), unique=True, nullable=False, index=True)
    mobile = Column(String(32), nullable=False)

    # Verification
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_sent_at = Column(DateTime(timezone=True), nullable=True)
    last_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    passcode = Column(String(6), nullable=True)  # plaintext, emailed to the registrant

    # Submission
    video_url = Column(String, nullable=True)
    video_public_id = Column(String, nullable=True)  # storage identifier of the video
    video_uploaded_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Approval
    status = Column(String(16), default=SubmissionStatus.PENDING.value, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    approved_by_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    certificate_url = Column(String, nullable=True)

    approved_by = relationship("Admin")
    certificate_issues = relationship(
        "CertificateIssue",
        back_populates="registrant",
        cascade="all, delete-orphan",
        order_by="CertificateIssue.id.desc()",
    )

    @property
    def stage(self):
        from wpd_portal.services.lifecycle import stage_of

        return stage_of(self)

    def __repr__(self):
        return f"<Registrant {self.name} ({self.email})>"
