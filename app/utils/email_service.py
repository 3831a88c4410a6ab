import os
import smtplib
import ssl
import logging
from email.message import EmailMessage
from html import escape

logger = logging.getLogger(__name__)

PORTAL_NAME = "CUI Lost & Found"


def _base_url():
    return os.getenv("BASE_URL", "http://localhost:3000")


def send_email(to_email: str, subject: str, body: str, html: str = None) -> bool:
    """Send one email. Returns False instead of raising when delivery fails."""
    smtp_server = os.getenv("SMTP_SERVER")
    smtp_port = int(os.getenv("SMTP_PORT") or 0)
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    smtp_from = os.getenv("SMTP_FROM") or smtp_user or "noreply@example.com"

    if not to_email:
        logger.warning("Email '%s' skipped: no recipient", subject)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = smtp_from
    msg["To"] = to_email
    msg.set_content(body)

    if html:
        msg.add_alternative(html, subtype="html")

    if not (smtp_server and smtp_port and smtp_user and smtp_pass):
        logger.info("SMTP not configured, email to %s not sent: %s", to_email, subject)
        return False

    try:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(smtp_server, smtp_port, context=context) as server:
            server.login(smtp_user, smtp_pass)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP send to %s failed: %s", to_email, e)
        return False

    logger.info("Email sent to %s (via %s:%s)", to_email, smtp_server, smtp_port)
    return True


def send_claim_notification_email(
    to: str,
    owner_name: str,
    item_name: str,
    item_type: str,
    claimant_name: str,
    claim_message: str,
    item_id,
) -> bool:
    claims_url = f"{_base_url()}/items/{item_id}/claims"
    kind = "Lost" if item_type == "lost" else "Found"

    subject = f"New Claim on Your {kind} Item - {item_name}"

    body = (
        f"Hello {owner_name},\n\n"
        f"{claimant_name} has submitted a claim for your {kind.lower()} item '{item_name}'.\n\n"
        f"Claim message:\n\"{claim_message}\"\n\n"
        f"Review the claim and contact the claimant: {claims_url}\n\n"
        f"This is an automated notification from {PORTAL_NAME} Portal."
    )

    html = (
        f"<h2>New Item Claim Notification</h2>"
        f"<p><strong>Item:</strong> {escape(item_name)} ({kind} Item)</p>"
        f"<p><strong>Claimant:</strong> {escape(claimant_name)}</p>"
        f"<blockquote>{escape(claim_message)}</blockquote>"
        f"<p><a href=\"{claims_url}\">Review Claim &amp; Contact Claimant</a></p>"
    )

    return send_email(to, subject, body, html)


def send_claim_contact_email(
    to: str,
    sender_email: str,
    item_name: str,
    owner_name: str,
    message: str,
    item_id,
) -> bool:
    item_url = f"{_base_url()}/items/{item_id}"

    subject = f"Regarding Your Claim: {item_name} - {PORTAL_NAME}"

    body = (
        f"Message regarding your claim on '{item_name}'\n"
        f"From: {owner_name} ({sender_email})\n\n"
        f"{message}\n\n"
        f"Please respond directly to {sender_email} to provide additional proof "
        f"or coordinate item return.\n"
        f"View item details: {item_url}"
    )

    html = (
        f"<h2>Message Regarding Your Claim</h2>"
        f"<p><strong>Item:</strong> {escape(item_name)}</p>"
        f"<p><strong>From:</strong> {escape(owner_name)} ({sender_email})</p>"
        f"<p style=\"white-space: pre-wrap;\">{escape(message)}</p>"
        f"<p><a href=\"{item_url}\">View Item Details</a></p>"
    )

    return send_email(to, subject, body, html)
