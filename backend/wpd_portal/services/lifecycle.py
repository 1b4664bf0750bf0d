"""
Registrant lifecycle.

A registrant moves through four stages:

    registered -> verified -> submitted -> approved

Verification is optional for uploading, so ``registered -> submitted`` is also
allowed, and a new upload always drops an approved registrant back to
``submitted``. The stored columns (``is_verified``, ``is_approved``,
``status``, video and approval fields) are only mutated through the functions
below so they never drift into combinations the stages cannot express.
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from wpd_portal.core.errors import Conflict
from wpd_portal.models.registrant import Registrant, SubmissionStatus


class RegistrantStage(str, enum.Enum):
    REGISTERED = "registered"
    VERIFIED = "verified"
    SUBMITTED = "submitted"
    APPROVED = "approved"


APPROVABLE_STAGES = frozenset({RegistrantStage.SUBMITTED, RegistrantStage.APPROVED})


def stage_of(registrant: Registrant) -> RegistrantStage:
    if registrant.video_url and registrant.is_approved:
        return RegistrantStage.APPROVED
    if registrant.video_url:
        return RegistrantStage.SUBMITTED
    if registrant.is_verified:
        return RegistrantStage.VERIFIED
    return RegistrantStage.REGISTERED


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def apply_registration(registrant: Registrant, *, annotation: str, name: str,
                       company_name: Optional[str], mobile: str, passcode: str,
                       now: Optional[datetime] = None) -> Registrant:
    """(Re-)registration: new profile and passcode, verification starts over.

    Video and approval fields are left untouched.
    """
    sent_at = _now(now)
    registrant.annotation = annotation
    registrant.name = name
    registrant.company_name = company_name
    registrant.mobile = mobile
    registrant.passcode = passcode
    registrant.is_verified = False
    registrant.verification_sent_at = sent_at
    registrant.last_reminder_sent_at = sent_at
    if registrant.status is None:
        registrant.status = SubmissionStatus.PENDING.value
    if registrant.is_approved is None:
        registrant.is_approved = False
    return registrant


def mark_verified(registrant: Registrant) -> bool:
    """Returns False when the registrant was already verified."""
    if registrant.is_verified:
        return False
    registrant.is_verified = True
    return True


def attach_video(registrant: Registrant, *, url: str, public_id: str,
                 now: Optional[datetime] = None) -> Registrant:
    """A new video always revokes any previous approval and certificate."""
    registrant.video_url = url
    registrant.video_public_id = public_id
    registrant.video_uploaded_at = _now(now)
    registrant.is_approved = False
    registrant.status = SubmissionStatus.PENDING.value
    registrant.approved_by_id = None
    registrant.approved_at = None
    registrant.certificate_url = None
    return registrant


def mark_approved(registrant: Registrant, admin_id: Optional[int],
                  now: Optional[datetime] = None) -> bool:
    """
    Approve the current submission.
    Returns True on first approval and False when it was already approved.
    Raises Conflict when there is no video to approve.
    """
    stage = stage_of(registrant)
    if stage not in APPROVABLE_STAGES:
        raise Conflict("Cannot approve a registrant who has not submitted a video.")
    if stage == RegistrantStage.APPROVED:
        return False

    registrant.is_approved = True
    registrant.status = SubmissionStatus.APPROVED.value
    registrant.approved_by_id = admin_id
    registrant.approved_at = _now(now)
    return True


def attach_certificate(registrant: Registrant, url: str) -> Registrant:
    if stage_of(registrant) != RegistrantStage.APPROVED:
        raise Conflict("Certificates can only be attached to approved submissions.")
    registrant.certificate_url = url
    return registrant
