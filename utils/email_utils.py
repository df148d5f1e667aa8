import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import ssl
import os
import certifi
from dotenv import load_dotenv

from services.errors import NotificationError

load_dotenv()

logger = logging.getLogger(__name__)

SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM", "no-reply@example.com")
SMTP_REPLY_TO = os.getenv("SMTP_REPLY_TO")
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))
SMTP_TIMEOUT = 10


def smtp_configured() -> bool:
    return bool(SMTP_SERVER and SMTP_USER and SMTP_PASSWORD)


def _connect() -> smtplib.SMTP:
    context = ssl.create_default_context(cafile=certifi.where())
    if SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_SERVER, SMTP_PORT, context=context, timeout=SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=SMTP_TIMEOUT)
    try:
        if SMTP_PORT != 465:
            server.starttls(context=context)
        server.login(SMTP_USER, SMTP_PASSWORD)
    except (smtplib.SMTPException, OSError):
        server.close()
        raise
    return server


def build_verification_message(email: str, code: str) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["From"] = SMTP_FROM
    message["To"] = email
    message["Subject"] = "Your verification code"
    if SMTP_REPLY_TO:
        message["Reply-To"] = SMTP_REPLY_TO

    plain_text_body = (
        "Thank you for signing up.\n\n"
        f"Your email verification code is: {code}\n\n"
        f"This code is valid for {OTP_EXPIRE_MINUTES} minutes."
    )
    html_body = (
        "<html><body>"
        "<p>Thank you for signing up.</p>"
        "<p>Your email verification code is:</p>"
        f"<p style=\"font-size: 24px; font-weight: bold;\">{code}</p>"
        f"<p>This code is valid for {OTP_EXPIRE_MINUTES} minutes.</p>"
        "</body></html>"
    )

    message.attach(MIMEText(plain_text_body, "plain"))
    message.attach(MIMEText(html_body, "html"))
    return message


def send_verification_code_email(email: str, code: str) -> None:
    """Deliver a verification code. Raises NotificationError on transport failure."""
    if not smtp_configured():
        logger.warning("No SMTP configured, skipping verification email to %s", email)
        return

    message = build_verification_message(email, code)
    try:
        server = _connect()
        try:
            server.sendmail(SMTP_FROM, email, message.as_string())
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationError(f"Email failed: {e}") from e


def verify_smtp_connection() -> bool:
    """Startup probe. Logs the outcome and never raises."""
    if not smtp_configured():
        logger.warning("SMTP transport is not configured, skipping SMTP verification")
        return False
    try:
        server = _connect()
        try:
            server.noop()
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError):
        logger.error("SMTP config error", exc_info=True)
        return False
    logger.info("SMTP ready")
    return True
