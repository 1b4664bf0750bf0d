import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import (
    AuthenticationFailed,
    Conflict,
    IntegrationError,
    InvalidToken,
    NotFound,
    TokenExpired,
    ValidationFailed,
)
from wpd_portal.core.security import (
    create_verification_token,
    decode_verification_token,
    generate_passcode,
)
from wpd_portal.models.registrant import Registrant
from wpd_portal.services.lifecycle import apply_registration, mark_verified
from wpd_portal.services.mailer import Mailer
from wpd_portal.utils.addresses import normalize_email
from wpd_portal.utils.templates import render_template

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = (
    "Registration successful! A verification email with your 6-digit passcode has been sent. "
    "Please check your inbox."
)
VERIFIED_MESSAGE = "Email verified successfully. You may now upload your video."
ALREADY_VERIFIED_MESSAGE = "Email already verified."
EXPIRED_LINK_MESSAGE = "Verification link has expired. Please register again to get a new link and passcode."
INVALID_LINK_MESSAGE = "Invalid verification token."
# Same text for unknown email and wrong passcode
STATUS_LOOKUP_FAILED = "No matching user found or invalid credentials."


@dataclass(frozen=True)
class RegistrationInput:
    annotation: str
    name: str
    email: str
    mobile: str
    company_name: Optional[str] = None


class RegistrationService:
    def __init__(self, db: Session, mailer: Mailer, settings: Settings):
        self.db = db
        self.mailer = mailer
        self.settings = settings

    def find_by_email(self, email: str) -> Optional[Registrant]:
        return self.db.query(Registrant).filter(Registrant.email == normalize_email(email)).first()

    def verification_link(self, token: str) -> str:
        return f"{self.settings.BASE_URL.rstrip('/')}/api/users/verify?{urlencode({'token': token})}"

    def register(self, data: RegistrationInput) -> str:
        """
        Create or refresh a registrant and email the verification link + passcode.
        The email goes out before anything is saved; a failed send aborts the registration.
        """
        passcode = generate_passcode()
        token = create_verification_token(
            {
                "name": data.name,
                "companyName": data.company_name,
                "email": data.email,
                "mobile": data.mobile,
            },
            settings=self.settings,
        )

        html = render_template(
            "email/verification.html",
            name=data.name,
            verify_link=self.verification_link(token),
            passcode=passcode,
        )
        self.mailer.send(
            data.email,
            "Verify Your World Pest Day Registration & Get Your Passcode",
            html,
        )

        registrant = self.find_by_email(data.email)
        is_new = registrant is None
        if is_new:
            registrant = Registrant(email=normalize_email(data.email))
            self.db.add(registrant)

        apply_registration(
            registrant,
            annotation=data.annotation,
            name=data.name,
            company_name=data.company_name,
            mobile=data.mobile,
            passcode=passcode,
        )

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent registration for {data.email}")
            raise Conflict(
                'Email already registered. Please use the "Check Status" option with your email and passcode.'
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Registration save failed for {data.email}: {e}")
            raise IntegrationError(f"Database error during registration: {e}") from e

        logger.info(f"✅ {'Registered' if is_new else 'Re-registered'} {data.email}")
        return REGISTERED_MESSAGE

    def verify(self, token: str) -> str:
        if not token:
            raise ValidationFailed("Verification token is required.")

        try:
            payload = decode_verification_token(token, settings=self.settings)
        except TokenExpired:
            raise TokenExpired(EXPIRED_LINK_MESSAGE)
        except InvalidToken:
            raise InvalidToken(INVALID_LINK_MESSAGE)

        registrant = self.find_by_email(payload["email"])
        if not registrant:
            raise NotFound("User not found for verification.")

        if not mark_verified(registrant):
            return ALREADY_VERIFIED_MESSAGE

        self.db.commit()
        logger.info(f"✅ Email verified for {registrant.email}")
        return VERIFIED_MESSAGE

    def check_status(self, email: Optional[str], passcode: Optional[str]) -> Registrant:
        if not email or not passcode:
            raise ValidationFailed("Email and 6-digit passcode are required to check status.")

        registrant = self.find_by_email(email)
        # Passcodes are low-value lookup codes, compared as plain strings
        if not registrant or registrant.passcode != passcode:
            raise AuthenticationFailed(STATUS_LOOKUP_FAILED)

        return registrant
