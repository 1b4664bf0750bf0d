import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wpd_portal.api.deps import get_approval_service
from wpd_portal.core.deps import AdminIdentity, get_current_admin
from wpd_portal.core.errors import AuthenticationFailed, ValidationFailed
from wpd_portal.core.security import create_admin_token, verify_password
from wpd_portal.db.session import get_db
from wpd_portal.models.admin import Admin
from wpd_portal.schemas import (
    ApprovalResponse,
    CertificateIssueView,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SubmissionSummary,
)
from wpd_portal.services.approval import ApprovalService

router = APIRouter()
logger = logging.getLogger(__name__)


# ==============================================================================
# 1. LOGIN
# ==============================================================================
@router.post("/login", response_model=LoginResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    if not login_data.email or not login_data.password:
        raise ValidationFailed("Email and password are required")

    admin = db.query(Admin).filter(Admin.email == login_data.email).first()
    # Same answer for unknown admin and wrong password
    if not admin or not verify_password(login_data.password, admin.password_hash):
        logger.warning(f"Failed admin login for {login_data.email}")
        raise AuthenticationFailed("Invalid email or password")

    token = create_admin_token(admin.id, admin.email)
    logger.info(f"🔑 Admin {admin.email} logged in")
    return LoginResponse(token=token, admin_id=admin.id)


@router.get("/dashboard", response_model=MessageResponse)
def dashboard(admin: AdminIdentity = Depends(get_current_admin)):
    return {"message": f"Welcome admin {admin.email}"}


# ==============================================================================
# 2. SUBMISSIONS
# ==============================================================================
@router.get("/submissions", response_model=List[SubmissionSummary])
def list_submissions(
    service: ApprovalService = Depends(get_approval_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Registrants with a video, most recent upload first"""
    return [SubmissionSummary.model_validate(r) for r in service.list_submissions()]


# ==============================================================================
# 3. APPROVE + CERTIFICATE
# ==============================================================================
@router.post("/approve/{user_id}", response_model=ApprovalResponse)
def approve(
    user_id: int,
    service: ApprovalService = Depends(get_approval_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """
    Approve a submission and email a freshly generated certificate.
    Calling it again on an approved submission re-sends the certificate.
    """
    result = service.approve(user_id, admin)
    return ApprovalResponse(message=result.message, certificate_url=result.certificate_url)


@router.get("/certificates/{user_id}", response_model=List[CertificateIssueView])
def certificate_history(
    user_id: int,
    service: ApprovalService = Depends(get_approval_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Every certificate attempt for a registrant and how far it got"""
    return [CertificateIssueView.model_validate(issue) for issue in service.issues_for(user_id)]
