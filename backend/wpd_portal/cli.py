"""Operational commands: ``wpd-portal create-admin`` and ``wpd-portal send-reminders``."""
import argparse
import getpass
import logging
import sys
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from wpd_portal.core.config import settings
from wpd_portal.core.errors import IntegrationError
from wpd_portal.core.logging import setup_logging
from wpd_portal.core.security import hash_password
from wpd_portal.db.session import SessionLocal, init_db
from wpd_portal.models.admin import Admin
from wpd_portal.models.registrant import Registrant
from wpd_portal.services.mailer import Mailer
from wpd_portal.utils.templates import render_template

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Reminder: Submit Your World Pest Day Video by {deadline}"


def create_admin(db: Session, email: str, password: str) -> Admin:
    if db.query(Admin).filter(Admin.email == email).first():
        raise ValueError(f"Admin already exists with email {email}")

    admin = Admin(email=email, password_hash=hash_password(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"✅ Admin user created: {email}")
    return admin


def send_reminders(db: Session, mailer: Mailer, deadline: str, site_url: str) -> dict:
    """Email every registrant without a video; one failed send does not stop the run."""
    pending = (
        db.query(Registrant)
        .filter(Registrant.video_url.is_(None))
        .order_by(Registrant.id)
        .all()
    )
    sent, failed = 0, []
    for registrant in pending:
        html = render_template(
            "email/reminder.html",
            annotation=registrant.annotation or "",
            name=registrant.name or "Participant",
            deadline=deadline,
            site_url=site_url,
        )
        try:
            mailer.send(registrant.email, REMINDER_SUBJECT.format(deadline=deadline), html)
        except IntegrationError as e:
            logger.error(f"❌ Failed to send reminder to {registrant.email}: {e.message}")
            failed.append(registrant.email)
            continue

        registrant.last_reminder_sent_at = datetime.now(timezone.utc)
        db.commit()
        sent += 1

    logger.info(f"📧 Reminders sent: {sent}, failed: {len(failed)}")
    return {"sent": sent, "failed": failed}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wpd-portal", description=settings.PROJECT_NAME)
    subcommands = parser.add_subparsers(dest="command", required=True)

    admin_cmd = subcommands.add_parser("create-admin", help="Create an admin account")
    admin_cmd.add_argument("--email", required=True)
    admin_cmd.add_argument("--password", help="Prompted for when omitted")

    reminder_cmd = subcommands.add_parser("send-reminders", help="Email registrants who have not uploaded a video")
    reminder_cmd.add_argument("--deadline", required=True, help='e.g. "August 15, 2025"')
    reminder_cmd.add_argument("--site-url", default=settings.FRONTEND_URL)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings)
    init_db()

    db = SessionLocal()
    try:
        if args.command == "create-admin":
            password = args.password or getpass.getpass("Admin password: ")
            try:
                create_admin(db, args.email, password)
            except ValueError as e:
                logger.warning(f"⚠️ {e}")
                return 1
        elif args.command == "send-reminders":
            result = send_reminders(db, Mailer(settings), args.deadline, args.site_url)
            return 1 if result["failed"] else 0
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
