import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Iterable

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import IntegrationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


class Mailer:
    """Sends HTML email over SMTP (or logs it with EMAIL_BACKEND=console)."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_message(self, to: str, subject: str, html: str,
                      attachments: Iterable[Attachment] = ()) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.settings.SMTP_FROM_NAME, self.settings.SMTP_USER or "no-reply@localhost"))
        msg["To"] = to
        msg["Message-ID"] = make_msgid()

        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")

        for attachment in attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return msg

    def send(self, to: str, subject: str, html: str,
             attachments: Iterable[Attachment] = ()) -> str:
        """Send one message and return its Message-ID. Failures raise IntegrationError."""
        if not to or not subject or not html:
            raise IntegrationError("Missing email parameters (to, subject, or html content)")

        msg = self.build_message(to, subject, html, attachments)

        if self.settings.EMAIL_BACKEND == "console":
            logger.info(f"📧 [console] To={to} Subject={subject!r}\n{html}")
            return msg["Message-ID"]

        smtp_host = self.settings.SMTP_HOST
        smtp_user = self.settings.SMTP_USER
        smtp_pass = self.settings.SMTP_PASS
        if not all([smtp_host, smtp_user, smtp_pass]):
            raise IntegrationError("Missing SMTP_HOST/SMTP_USER/SMTP_PASS in env")

        try:
            with smtplib.SMTP(smtp_host, self.settings.SMTP_PORT) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                server.login(smtp_user, smtp_pass)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Failed to send email to {to}: {e}")
            raise IntegrationError(f"Failed to send email: {e}") from e

        logger.info(f"✅ Email sent to {to}: MessageID={msg['Message-ID']}")
        return msg["Message-ID"]
