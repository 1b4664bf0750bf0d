"""
Admin approval workflow.

Approving a submission is a sequence of steps that are not transactional
across each other: the approval itself, then render -> convert -> store ->
link -> email for the certificate. Each attempt is tracked as a
``CertificateIssue`` row whose ``last_step`` / ``failed_step`` show exactly
how far it got, so a failed delivery is visible and can be retried by
approving again.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wpd_portal.core.deps import AdminIdentity
from wpd_portal.core.errors import IntegrationError, NotFound, PortalError
from wpd_portal.models.certificate import CertificateIssue, IssueStatus, IssueStep
from wpd_portal.models.registrant import Registrant
from wpd_portal.services.certificates import CertificateData, CertificateService
from wpd_portal.services.lifecycle import attach_certificate, mark_approved
from wpd_portal.services.mailer import Attachment, Mailer
from wpd_portal.utils.templates import render_template

logger = logging.getLogger(__name__)

APPROVED_MESSAGE = "User video approved and certificate emailed successfully."
RESENT_MESSAGE = "Certificate re-sent successfully."
CERTIFICATE_SUBJECT = "Congratulations! Your World Pest Day Certificate"


@dataclass(frozen=True)
class ApprovalResult:
    message: str
    certificate_url: str
    first_approval: bool
    issue_id: int


class ApprovalService:
    def __init__(self, db: Session, certificates: CertificateService, mailer: Mailer):
        self.db = db
        self.certificates = certificates
        self.mailer = mailer

    def list_submissions(self) -> List[Registrant]:
        return (
            self.db.query(Registrant)
            .filter(Registrant.video_url.isnot(None))
            .order_by(Registrant.video_uploaded_at.desc(), Registrant.id.desc())
            .all()
        )

    def get_registrant(self, user_id: int) -> Registrant:
        registrant = self.db.get(Registrant, user_id)
        if not registrant:
            raise NotFound("User not found")
        return registrant

    def issues_for(self, user_id: int) -> List[CertificateIssue]:
        return list(self.get_registrant(user_id).certificate_issues)

    def _advance(self, issue: CertificateIssue, step: IssueStep):
        issue.last_step = step.value
        self.db.commit()
        logger.info(f"[APPROVE] issue={issue.id} step={step.value} done")

    def _record_failure(self, issue_id: int, step: IssueStep, error: Exception):
        try:
            issue = self.db.get(CertificateIssue, issue_id)
            issue.status = IssueStatus.FAILED.value
            issue.failed_step = step.value
            issue.error_message = str(error)
            issue.finished_at = datetime.now(timezone.utc)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ [APPROVE] Could not record failure of issue {issue_id}: {e}")

    def approve(self, user_id: int, admin: AdminIdentity) -> ApprovalResult:
        """
        Approve a submission (first time) or re-send its certificate (already approved).
        A fresh certificate dated today is generated and emailed either way.
        """
        registrant = self.get_registrant(user_id)
        logger.info(f"[APPROVE] {registrant.email} requested by {admin.email}, isApproved={registrant.is_approved}")

        first_approval = mark_approved(registrant, admin.id)

        issue = CertificateIssue(
            registrant=registrant,
            issued_by_id=admin.id,
            first_approval=first_approval,
            status=IssueStatus.STARTED.value,
        )
        self.db.add(issue)
        # Approval is kept even if certificate delivery fails below
        self.db.commit()
        issue_id = issue.id

        step = IssueStep.RENDERED
        try:
            data = CertificateData(
                annotation=registrant.annotation,
                name=registrant.name,
                company_name=registrant.company_name,
                issued_on=datetime.now(timezone.utc).date(),
            )
            html = self.certificates.render_html(data)
            self._advance(issue, step)

            step = IssueStep.CONVERTED
            pdf = self.certificates.convert(html, data)
            self._advance(issue, step)

            step = IssueStep.STORED
            stored = self.certificates.store(pdf, data)
            issue.certificate_url = stored.url
            self._advance(issue, step)

            step = IssueStep.LINKED
            attach_certificate(registrant, stored.url)
            self._advance(issue, step)

            step = IssueStep.EMAILED
            html_body = render_template(
                "email/certificate.html",
                name=registrant.name,
                certificate_url=stored.url,
            )
            self.mailer.send(
                registrant.email,
                CERTIFICATE_SUBJECT,
                html_body,
                attachments=[Attachment(filename=data.filename, content=pdf)],
            )
            issue.status = IssueStatus.SUCCEEDED.value
            issue.finished_at = datetime.now(timezone.utc)
            self._advance(issue, step)
        except Exception as e:
            # Any failure past the approval commit is recorded on the issue row
            self.db.rollback()
            logger.error(f"❌ [APPROVE] issue={issue_id} failed at {step.value}: {e}", exc_info=not isinstance(e, PortalError))
            self._record_failure(issue_id, step, e)
            message = e.message if isinstance(e, PortalError) else str(e)
            raise IntegrationError(
                f"Server error during certificate generation or email sending: {message}"
            ) from e

        logger.info(f"✅ [APPROVE] Certificate delivered to {registrant.email}")
        return ApprovalResult(
            message=APPROVED_MESSAGE if first_approval else RESENT_MESSAGE,
            certificate_url=stored.url,
            first_approval=first_approval,
            issue_id=issue_id,
        )
