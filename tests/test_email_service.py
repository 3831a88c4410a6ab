import smtplib

from app.utils import email_service


def test_unconfigured_smtp_returns_false():
    assert email_service.send_email("someone@campus.edu", "Subject", "Body") is False


def test_missing_recipient_returns_false(monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")

    assert email_service.send_email("", "Subject", "Body") is False


def test_smtp_failure_is_reported_not_raised(monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "465")
    monkeypatch.setenv("SMTP_USER", "portal@example.com")
    monkeypatch.setenv("SMTP_PASS", "secret")

    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "service not available")

    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", refuse)

    assert email_service.send_claim_contact_email(
        to="claimant@campus.edu",
        sender_email="owner@campus.edu",
        item_name="Wallet",
        owner_name="Olivia",
        message="<b>hi</b>",
        item_id="abc",
    ) is False


def test_sent_message_escapes_html(monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "465")
    monkeypatch.setenv("SMTP_USER", "portal@example.com")
    monkeypatch.setenv("SMTP_PASS", "secret")

    sent = []

    class FakeSMTP:
        def __init__(self, *args, **kwargs):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def login(self, user, password):
            pass

        def send_message(self, msg):
            sent.append(msg)

    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTP)

    assert email_service.send_claim_notification_email(
        to="owner@campus.edu",
        owner_name="Olivia",
        item_name="Wallet",
        item_type="found",
        claimant_name="<script>",
        claim_message="mine",
        item_id="abc",
    ) is True

    html = sent[0].get_body(preferencelist=("html",)).get_content()
    assert "&lt;script&gt;" in html
    assert sent[0]["Subject"] == "New Claim on Your Found Item - Wallet"
