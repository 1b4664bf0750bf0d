import smtplib

import pytest

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import IntegrationError
from wpd_portal.services import mailer as mailer_module
from wpd_portal.services.mailer import Attachment, Mailer


class FakeSMTP:
    instances = []

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


class RefusingSMTP(FakeSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


def smtp_settings(**overrides):
    values = {
        "EMAIL_BACKEND": "smtp",
        "SMTP_HOST": "smtp.example.org",
        "SMTP_PORT": 2525,
        "SMTP_USER": "noreply@pestday.org",
        "SMTP_PASS": "pw",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def reset_smtp():
    FakeSMTP.instances = []


def test_smtp_send_with_attachment(monkeypatch):
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", FakeSMTP)
    mailer = Mailer(smtp_settings())

    message_id = mailer.send(
        "asha@pestday.org",
        "Your certificate",
        "<p>Hi</p>",
        attachments=[Attachment(filename="cert.pdf", content=b"%PDF-1.4")],
    )

    [server] = FakeSMTP.instances
    assert (server.host, server.port) == ("smtp.example.org", 2525)
    assert server.started_tls is True
    assert server.logged_in == ("noreply@pestday.org", "pw")
    [msg] = server.sent
    assert msg["To"] == "asha@pestday.org"
    assert msg["Message-ID"] == message_id
    assert "World Pest Day Team" in msg["From"]
    [attachment] = list(msg.iter_attachments())
    assert attachment.get_filename() == "cert.pdf"
    assert attachment.get_content_type() == "application/pdf"
    assert attachment.get_content() == b"%PDF-1.4"


def test_smtp_failure_raises_integration_error(monkeypatch):
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", RefusingSMTP)
    mailer = Mailer(smtp_settings())

    with pytest.raises(IntegrationError, match="Failed to send email"):
        mailer.send("asha@pestday.org", "Hello", "<p>Hi</p>")


def test_smtp_requires_credentials(monkeypatch):
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", FakeSMTP)
    mailer = Mailer(smtp_settings(SMTP_PASS=""))

    with pytest.raises(IntegrationError, match="SMTP"):
        mailer.send("asha@pestday.org", "Hello", "<p>Hi</p>")
    assert FakeSMTP.instances == []


def test_console_backend_does_not_connect(monkeypatch):
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", FakeSMTP)
    mailer = Mailer(Settings(EMAIL_BACKEND="console"))

    assert mailer.send("asha@pestday.org", "Hello", "<p>Hi</p>")
    assert FakeSMTP.instances == []


def test_missing_parameters(monkeypatch):
    mailer = Mailer(Settings(EMAIL_BACKEND="console"))
    with pytest.raises(IntegrationError, match="Missing email parameters"):
        mailer.send("", "Hello", "<p>Hi</p>")
