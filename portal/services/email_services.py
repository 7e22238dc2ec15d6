import logging
import smtplib
from email.mime.text import MIMEText

from portal.config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, subtype: str = "plain") -> bool:
    """Send through SMTP, or log a mock message when SMTP is not configured."""
    if not settings.smtp_configured:
        logger.info("MOCK EMAIL to=%s subject=%s\n%s", to_email, subject, body)
        return False

    msg = MIMEText(body, subtype)
    msg["Subject"] = subject
    msg["From"] = settings.FROM_EMAIL
    msg["To"] = to_email

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)
    logger.info("Email sent to %s subject=%s", to_email, subject)
    return True


def send_otp_email(to_email: str, otp: str) -> bool:
    body = (
        f"Your verification code is: {otp}\n\n"
        f"It expires in {settings.OTP_EXPIRY_MINUTES} minutes. "
        "If you did not try to sign in, please ignore this email."
    )
    return send_email(to_email, "Your Verification Code - Godman Capital", body)


def send_lead_notification(lead: dict) -> bool:
    if not settings.LEADS_NOTIFY_EMAIL:
        logger.info("Lead notification skipped, LEADS_NOTIFY_EMAIL not set")
        return False
    lines = [f"{key}: {value}" for key, value in lead.items() if value]
    return send_email(settings.LEADS_NOTIFY_EMAIL, "New Contact Inquiry", "\n".join(lines))


def send_credentials_email(to_email: str, temp_password: str) -> bool:
    body = (
        "Your investor portal account is ready.\n\n"
        f"Email: {to_email}\n"
        f"Temporary password: {temp_password}\n\n"
        "You will be asked for a one-time code sent to this address when you sign in."
    )
    return send_email(to_email, "Your Portal Login - Godman Capital", body)
