import os
import re
import tempfile

# Configure before the application (and its settings object) is imported
os.environ.update({
    "LOG_FILE": "",
    "DATABASE_URL": "sqlite://",
    "MEDIA_ROOT": tempfile.mkdtemp(prefix="wpd-media-"),
    "BASE_URL": "http://testserver",
    "SECRET_KEY": "wpd-portal-test-secret-key-0123456789abcdef",
    "EMAIL_BACKEND": "console",
    "STORAGE_BACKEND": "local",
})

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wpd_portal.api.deps import get_mailer, get_renderer, get_storage
from wpd_portal.cli import create_admin
from wpd_portal.core.config import settings
from wpd_portal.core.errors import IntegrationError
from wpd_portal.db.base import Base
from wpd_portal.db.session import get_db, init_db
from wpd_portal.main import app
from wpd_portal.services.certificates import CertificateRenderer
from wpd_portal.services.mailer import Mailer
from wpd_portal.services.storage import LocalMediaStorage

ADMIN_EMAIL = "admin@ipca.org"
ADMIN_PASSWORD = "S3cret!pass"

FAKE_PDF = b"%PDF-1.4\n% fake certificate\n%%EOF"


class RecordingMailer(Mailer):
    """Keeps messages in memory instead of talking to SMTP."""

    def __init__(self):
        super().__init__(settings)
        self.outbox = []
        self.fail_with = None

    def send(self, to, subject, html, attachments=()):
        if self.fail_with:
            raise IntegrationError(self.fail_with)
        self.outbox.append({"to": to, "subject": subject, "html": html, "attachments": list(attachments)})
        return f"<msg-{len(self.outbox)}@test>"

    def last_to(self, email):
        return [m for m in self.outbox if m["to"] == email][-1]


class FakeRenderer(CertificateRenderer):
    name = "fake"

    def __init__(self):
        self.rendered = []
        self.fail_with = None

    def render(self, html, filename):
        if self.fail_with:
            raise IntegrationError(self.fail_with)
        self.rendered.append((filename, html))
        return FAKE_PDF


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def storage(tmp_path):
    return LocalMediaStorage(settings, root=tmp_path / "media")


@pytest.fixture
def client(db, mailer, renderer, storage):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return create_admin(db, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def admin_headers(client, admin):
    res = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def registration_payload(**overrides):
    payload = {
        "annotation": "Ms",
        "name": "Asha",
        "companyName": "Pest Free Ltd",
        "email": "a@x.com",
        "mobile": "9999999999",
    }
    payload.update(overrides)
    return payload


def verification_token(message) -> str:
    match = re.search(r"verify\?token=([A-Za-z0-9_\-\.]+)", message["html"])
    assert match, "verification link missing from email"
    return match.group(1)


def emailed_passcode(message) -> str:
    match = re.search(r"<strong>(\d{6})</strong>", message["html"])
    assert match, "passcode missing from email"
    return match.group(1)


def upload(client, email, content=b"\x00\x00\x00\x18ftypmp42", filename="clip.mp4", content_type="video/mp4"):
    return client.post(
        "/api/upload",
        params={"email": email},
        files={"video": (filename, content, content_type)},
    )


@pytest.fixture
def register(client, mailer):
    """Registers a participant and returns the emailed message."""

    def _register(**overrides):
        payload = registration_payload(**overrides)
        res = client.post("/api/users/register", json=payload)
        assert res.status_code == 200, res.text
        return mailer.last_to(payload["email"])

    return _register
