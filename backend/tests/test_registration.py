from datetime import timedelta

from conftest import emailed_passcode, registration_payload, upload, verification_token
from wpd_portal.core.security import create_admin_token, create_verification_token
from wpd_portal.models.registrant import Registrant
from wpd_portal.services.registration import (
    ALREADY_VERIFIED_MESSAGE,
    EXPIRED_LINK_MESSAGE,
    INVALID_LINK_MESSAGE,
    REGISTERED_MESSAGE,
    STATUS_LOOKUP_FAILED,
    VERIFIED_MESSAGE,
)


def get_registrant(db, email="a@x.com"):
    db.expire_all()
    return db.query(Registrant).filter(Registrant.email == email).one()


# ---------- register ----------

def test_register_creates_unverified_registrant_and_sends_email(client, db, mailer):
    res = client.post("/api/users/register", json=registration_payload())

    assert res.status_code == 200
    assert res.json() == {"message": REGISTERED_MESSAGE}

    registrant = get_registrant(db)
    assert registrant.name == "Asha"
    assert registrant.annotation == "Ms"
    assert registrant.company_name == "Pest Free Ltd"
    assert registrant.is_verified is False
    assert registrant.is_approved is False
    assert registrant.status == "pending"
    assert registrant.video_url is None
    assert len(registrant.passcode) == 6 and registrant.passcode.isdigit()
    assert registrant.verification_sent_at is not None

    assert len(mailer.outbox) == 1
    message = mailer.outbox[0]
    assert message["to"] == "a@x.com"
    assert "Verify" in message["subject"]
    assert emailed_passcode(message) == registrant.passcode
    assert "/api/users/verify?token=" in message["html"]


def test_register_without_company_name(client, db):
    res = client.post("/api/users/register", json=registration_payload(companyName="   "))
    assert res.status_code == 200
    assert get_registrant(db).company_name is None


def test_register_rejects_invalid_email(client, mailer):
    res = client.post("/api/users/register", json=registration_payload(email="not-an-email"))
    assert res.status_code == 400
    assert "email" in res.json()["message"]
    assert mailer.outbox == []


def test_register_rejects_unknown_annotation(client):
    res = client.post("/api/users/register", json=registration_payload(annotation="Sir"))
    assert res.status_code == 400


def test_register_requires_name(client):
    payload = registration_payload()
    del payload["name"]
    res = client.post("/api/users/register", json=payload)
    assert res.status_code == 400


def test_register_email_failure_saves_nothing(client, db, mailer):
    mailer.fail_with = "SMTP down"

    res = client.post("/api/users/register", json=registration_payload())

    assert res.status_code == 500
    assert res.json()["message"] == "SMTP down"
    assert db.query(Registrant).count() == 0


def test_reregister_refreshes_profile_but_keeps_submission(client, db, register):
    first = register()
    client.get("/api/users/verify", params={"token": verification_token(first)})
    assert upload(client, "a@x.com").status_code == 200
    before = get_registrant(db)
    video_url = before.video_url

    second = register(name="Asha Rao", mobile="8888888888")

    registrant = get_registrant(db)
    assert db.query(Registrant).count() == 1
    assert registrant.name == "Asha Rao"
    assert registrant.mobile == "8888888888"
    assert registrant.is_verified is False
    assert registrant.video_url == video_url
    assert emailed_passcode(second) == registrant.passcode


# ---------- verify ----------

def test_verify_marks_registrant_verified(client, db, register):
    message = register()

    res = client.get("/api/users/verify", params={"token": verification_token(message)})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/plain")
    assert res.text == VERIFIED_MESSAGE
    assert get_registrant(db).is_verified is True


def test_verify_twice_reports_already_verified(client, register):
    token = verification_token(register())
    client.get("/api/users/verify", params={"token": token})

    res = client.get("/api/users/verify", params={"token": token})

    assert res.status_code == 200
    assert res.text == ALREADY_VERIFIED_MESSAGE


def test_verify_expired_token(client, db, register):
    register()
    token = create_verification_token({"email": "a@x.com"}, expires_delta=timedelta(seconds=-5))

    res = client.get("/api/users/verify", params={"token": token})

    assert res.status_code == 400
    assert res.text == EXPIRED_LINK_MESSAGE
    assert get_registrant(db).is_verified is False


def test_verify_garbage_token(client):
    res = client.get("/api/users/verify", params={"token": "not.a.jwt"})
    assert res.status_code == 400
    assert res.text == INVALID_LINK_MESSAGE


def test_verify_rejects_admin_token(client, register):
    register()
    token = create_admin_token(1, "a@x.com")

    res = client.get("/api/users/verify", params={"token": token})

    assert res.status_code == 400
    assert res.text == INVALID_LINK_MESSAGE


def test_verify_requires_token(client):
    res = client.get("/api/users/verify")
    assert res.status_code == 400
    assert res.text == "Verification token is required."


def test_verify_unknown_registrant(client, db):
    token = create_verification_token({"email": "ghost@x.com"})

    res = client.get("/api/users/verify", params={"token": token})

    assert res.status_code == 404
    assert res.text == "User not found for verification."
    assert db.query(Registrant).count() == 0


# ---------- check status ----------

def test_check_status_returns_record_without_passcode(client, register):
    passcode = emailed_passcode(register())

    res = client.post("/api/users/check", json={"email": "a@x.com", "passcode": passcode})

    assert res.status_code == 200
    body = res.json()
    assert body["email"] == "a@x.com"
    assert body["companyName"] == "Pest Free Ltd"
    assert body["isVerified"] is False
    assert body["isApproved"] is False
    assert body["stage"] == "registered"
    assert body["videoUrl"] is None
    assert "passcode" not in body


def test_check_status_failures_share_one_message(client, register):
    register()

    wrong = client.post("/api/users/check", json={"email": "a@x.com", "passcode": "000000x"})
    unknown = client.post("/api/users/check", json={"email": "nobody@x.com", "passcode": "123456"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"] == STATUS_LOOKUP_FAILED


def test_check_status_requires_both_fields(client):
    res = client.post("/api/users/check", json={"email": "a@x.com"})
    assert res.status_code == 400


# ---------- upload page lookup ----------

def test_video_lookup_unknown_email_is_null(client):
    res = client.get("/api/users/video", params={"email": "nobody@x.com"})
    assert res.status_code == 200
    assert res.json() is None


def test_video_lookup_returns_submission(client, register):
    register()
    upload(client, "a@x.com")

    res = client.get("/api/users/video", params={"email": "a@x.com"})

    body = res.json()
    assert res.status_code == 200
    assert body["videoUrl"].startswith("http://testserver/media/wpd_videos/")
    assert body["publicId"].startswith("wpd_videos/")
    assert body["stage"] == "submitted"
    assert "passcode" not in body


def test_video_lookup_requires_email(client):
    res = client.get("/api/users/video")
    assert res.status_code == 400


def test_reregister_keeps_approval_and_certificate(client, db, register, admin_headers):
    register()
    upload(client, "a@x.com")
    registrant = get_registrant(db)
    client.post(f"/api/admin/approve/{registrant.id}", headers=admin_headers)

    register(mobile="7777777777")

    registrant = get_registrant(db)
    assert registrant.mobile == "7777777777"
    assert registrant.is_approved is True
    assert registrant.certificate_url is not None


def test_mixed_case_domain_matches_on_every_lookup(client, db, mailer):
    res = client.post("/api/users/register", json=registration_payload(email="asha@Example.COM"))
    assert res.status_code == 200
    assert get_registrant(db, "asha@example.com")
    passcode = emailed_passcode(mailer.last_to("asha@example.com"))

    checked = client.post("/api/users/check", json={"email": "asha@Example.COM", "passcode": passcode})
    uploaded = upload(client, "asha@Example.COM")
    looked_up = client.get("/api/users/video", params={"email": "asha@Example.COM"})

    assert checked.status_code == 200
    assert checked.json()["email"] == "asha@example.com"
    assert uploaded.status_code == 200
    assert looked_up.json()["videoUrl"] == uploaded.json()["videoUrl"]


def test_reregister_with_different_domain_case_updates_same_record(client, db):
    client.post("/api/users/register", json=registration_payload(email="asha@example.com"))
    res = client.post("/api/users/register", json=registration_payload(email="asha@EXAMPLE.com", name="Asha Rao"))

    assert res.status_code == 200
    assert db.query(Registrant).count() == 1
    assert get_registrant(db, "asha@example.com").name == "Asha Rao"
