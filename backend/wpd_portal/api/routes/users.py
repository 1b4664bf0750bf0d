import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from wpd_portal.api.deps import get_registration_service
from wpd_portal.core.errors import PortalError, ValidationFailed
from wpd_portal.schemas import (
    CheckStatusRequest,
    MessageResponse,
    RegisterRequest,
    RegistrantRecord,
    RegistrantView,
)
from wpd_portal.services.registration import RegistrationInput, RegistrationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=MessageResponse)
def register(payload: RegisterRequest, service: RegistrationService = Depends(get_registration_service)):
    """
    Register (or re-register) for the campaign.
    Emails a verification link and a 6-digit passcode.
    """
    message = service.register(
        RegistrationInput(
            annotation=payload.annotation.value,
            name=payload.name,
            company_name=payload.company_name,
            email=str(payload.email),
            mobile=payload.mobile,
        )
    )
    return {"message": message}


@router.post("/check", response_model=RegistrantView)
def check_status(payload: CheckStatusRequest, service: RegistrationService = Depends(get_registration_service)):
    """Self-service status lookup with email + passcode"""
    registrant = service.check_status(payload.email, payload.passcode)
    return RegistrantView.model_validate(registrant)


@router.get("/verify", response_class=PlainTextResponse)
def verify(token: Optional[str] = Query(None), service: RegistrationService = Depends(get_registration_service)):
    """Email verification link target; answers in plain text"""
    try:
        return PlainTextResponse(service.verify(token))
    except PortalError as e:
        logger.warning(f"Verification failed: {e.message}")
        return PlainTextResponse(e.message, status_code=e.status_code)


@router.get("/video", response_model=Optional[RegistrantRecord])
def video_status(email: Optional[str] = Query(None), service: RegistrationService = Depends(get_registration_service)):
    """Submission data for the upload page; null when the email is unknown"""
    if not email:
        raise ValidationFailed("Email query parameter is required.")
    registrant = service.find_by_email(email)
    if registrant is None:
        return None
    return RegistrantRecord.model_validate(registrant)
