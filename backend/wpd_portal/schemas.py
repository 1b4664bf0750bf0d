from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from wpd_portal.models.registrant import Annotation
from wpd_portal.services.lifecycle import RegistrantStage


class CamelModel(BaseModel):
    """JSON uses camelCase keys (companyName, isVerified, ...)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    message: str


# ---------- Registrants ----------

class RegisterRequest(CamelModel):
    annotation: Annotation
    name: str = Field(..., min_length=1, max_length=200)
    company_name: Optional[str] = Field(None, max_length=200)
    email: EmailStr
    mobile: str = Field(..., min_length=1, max_length=32)

    @field_validator("name", "mobile", "company_name", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("company_name")
    @classmethod
    def blank_company_is_none(cls, value):
        return value or None


class CheckStatusRequest(CamelModel):
    email: Optional[str] = None
    passcode: Optional[str] = None


class RegistrantView(CamelModel):
    """Status lookup result; never includes the passcode."""

    annotation: str
    name: str
    company_name: Optional[str] = None
    email: str
    mobile: str
    is_verified: bool
    video_url: Optional[str] = None
    video_uploaded_at: Optional[datetime] = None
    status: str
    stage: RegistrantStage
    is_approved: bool
    approved_by: Optional[int] = Field(None, validation_alias="approved_by_id", serialization_alias="approvedBy")
    approved_at: Optional[datetime] = None
    certificate_url: Optional[str] = None
    created_at: datetime


class RegistrantRecord(RegistrantView):
    id: int
    verification_sent_at: Optional[datetime] = None
    last_reminder_sent_at: Optional[datetime] = None
    public_id: Optional[str] = Field(None, validation_alias="video_public_id", serialization_alias="publicId")


# ---------- Admin ----------

class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(CamelModel):
    message: str = "Login successful"
    token: str
    admin_id: int


class SubmissionSummary(CamelModel):
    id: int
    annotation: str
    name: str
    email: str
    company_name: Optional[str] = None
    mobile: str
    video_url: Optional[str] = None
    is_verified: bool
    is_approved: bool
    stage: RegistrantStage
    certificate_url: Optional[str] = None


class ApprovalResponse(CamelModel):
    message: str
    certificate_url: str


class CertificateIssueView(CamelModel):
    id: int
    first_approval: bool
    status: str
    last_step: Optional[str] = None
    failed_step: Optional[str] = None
    error_message: Optional[str] = None
    certificate_url: Optional[str] = None
    issued_by: Optional[int] = Field(None, validation_alias="issued_by_id", serialization_alias="issuedBy")
    started_at: datetime
    finished_at: Optional[datetime] = None


# ---------- Traffic ----------

class TrackVisitRequest(CamelModel):
    visitor_id: Optional[str] = None


class VisitSummary(CamelModel):
    total_unique_visitors: int
    unique_visitors_today: int


class DailyVisitCount(BaseModel):
    date: str
    count: int
