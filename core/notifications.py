"""
Transactional email for complaint lifecycle events.

Sending is best-effort: `Notifier.send` never raises, and routes hand the send
to FastAPI's BackgroundTasks so a slow or failing mail server cannot delay or
fail the request that triggered it.
"""
from dataclasses import dataclass
from html import escape
from typing import Optional

from fastapi import BackgroundTasks, Request
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from config import settings
from core.logger import logger

SIGNATURE = "<p>Best regards,<br>The UrbanAssist Team</p>"


@dataclass
class EmailMessage:
    subject: str
    html: str


class Notifier:
    """Wraps a FastMail client; created once at startup and shared by all requests."""

    def __init__(self, mail: Optional[FastMail], enabled: bool = True):
        self.mail = mail
        self.enabled = enabled

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        """
        Deliver one HTML email.

        Returns True when delivered or when mail is switched off (so callers do
        not raise alerts in test environments), False on any failure.
        """
        if not self.enabled:
            logger.info(f"Email sending skipped (mail disabled): '{subject}' to {recipient}")
            return True

        if self.mail is None:
            logger.warning(f"Email credentials not set, skipping '{subject}' to {recipient}")
            return False

        message = MessageSchema(
            subject=subject,
            recipients=[recipient],
            body=body,
            subtype=MessageType.html,
        )
        try:
            await self.mail.send_message(message)
            logger.info(f"Email sent to {recipient}: {subject}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {e}", exc_info=True)
            return False

    def dispatch(
        self,
        background_tasks: BackgroundTasks,
        recipient: str | None,
        message: EmailMessage,
    ) -> None:
        """Queue a send to run after the response; fire-and-forget."""
        if not recipient:
            return
        background_tasks.add_task(self.send, recipient, message.subject, message.html)


def build_notifier() -> Notifier:
    """Create the process-wide notifier from settings."""
    if not settings.MAIL_ENABLED:
        logger.info("Mail disabled for this environment; notifications are no-ops")
        return Notifier(None, enabled=False)

    if not settings.MAIL_USERNAME or not settings.MAIL_PASSWORD:
        logger.warning("SMTP credentials not set (MAIL_USERNAME/MAIL_PASSWORD). Emails will not be sent.")
        return Notifier(None)

    try:
        conf = ConnectionConfig(
            MAIL_USERNAME=settings.MAIL_USERNAME,
            MAIL_PASSWORD=settings.MAIL_PASSWORD,
            MAIL_FROM=settings.MAIL_FROM or settings.MAIL_USERNAME,
            MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
            MAIL_PORT=settings.MAIL_PORT,
            MAIL_SERVER=settings.MAIL_SERVER,
            MAIL_STARTTLS=settings.MAIL_STARTTLS,
            MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
            USE_CREDENTIALS=True,
            VALIDATE_CERTS=True,
        )
    except Exception as e:
        logger.error(f"Failed to initialize FastAPI-Mail: {e}", exc_info=True)
        return Notifier(None)

    logger.info("FastAPI-Mail initialized successfully")
    return Notifier(FastMail(conf))


def get_notifier(request: Request) -> Notifier:
    """FastAPI dependency returning the notifier stored on app.state."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = request.app.state.notifier = build_notifier()
    return notifier


# ---------- Message builders ----------

def welcome_email(first_name: str) -> EmailMessage:
    return EmailMessage(
        subject="Welcome to Community Problem Reporting System",
        html=(
            "<h1>Welcome to Community Problem Reporting System!</h1>"
            f"<p>Hi {escape(first_name)},</p>"
            "<p>Thank you for registering. You can now report problems in your community "
            "and track their resolution from your dashboard.</p>"
            f"{SIGNATURE}"
        ),
    )


def complaint_submitted_email(first_name: str, complaint) -> EmailMessage:
    return EmailMessage(
        subject="Complaint Submitted Successfully",
        html=(
            "<h1>Complaint Submitted</h1>"
            f"<p>Dear {escape(first_name)},</p>"
            "<p>Your complaint has been submitted successfully:</p>"
            f"<p><strong>Complaint ID:</strong> {complaint.complaint_id}</p>"
            f"<p><strong>Title:</strong> {escape(complaint.title)}</p>"
            f"<p><strong>Category:</strong> {complaint.category}</p>"
            f"<p><strong>Status:</strong> {complaint.status_text}</p>"
            "<p>Thank you for helping improve our community.</p>"
            f"{SIGNATURE}"
        ),
    )


def status_update_email(first_name: str, complaint, comment: str | None = None) -> EmailMessage:
    comment_html = f"<p><strong>Comment:</strong> {escape(comment)}</p>" if comment else ""
    return EmailMessage(
        subject=f"Complaint Status Updated: {complaint.complaint_id}",
        html=(
            "<h1>Complaint Status Updated</h1>"
            f"<p>Dear {escape(first_name)},</p>"
            "<p>The status of your complaint has been updated:</p>"
            f"<p><strong>Complaint ID:</strong> {complaint.complaint_id}</p>"
            f"<p><strong>Title:</strong> {escape(complaint.title)}</p>"
            f"<p><strong>New Status:</strong> {complaint.status_text}</p>"
            f"{comment_html}"
            f"{SIGNATURE}"
        ),
    )


def assignment_email(first_name: str, complaint, note: str | None = None) -> EmailMessage:
    note_html = f"<p><strong>Note:</strong> {escape(note)}</p>" if note else ""
    return EmailMessage(
        subject=f"Complaint Assigned: {complaint.complaint_id}",
        html=(
            "<h1>Complaint Assigned</h1>"
            f"<p>Dear {escape(first_name)},</p>"
            f"<p>Your complaint has been assigned to the {complaint.assigned_department} department:</p>"
            f"<p><strong>Complaint ID:</strong> {complaint.complaint_id}</p>"
            f"<p><strong>Title:</strong> {escape(complaint.title)}</p>"
            f"<p><strong>Status:</strong> {complaint.status_text}</p>"
            f"{note_html}"
            f"{SIGNATURE}"
        ),
    )


def new_comment_email(first_name: str, complaint, comment: str) -> EmailMessage:
    return EmailMessage(
        subject=f"New Comment on Your Complaint: {complaint.complaint_id}",
        html=(
            "<h1>New Comment on Your Complaint</h1>"
            f"<p>Dear {escape(first_name)},</p>"
            "<p>A new comment has been added to your complaint:</p>"
            f"<p><strong>Complaint ID:</strong> {complaint.complaint_id}</p>"
            f"<p><strong>Title:</strong> {escape(complaint.title)}</p>"
            f"<p><strong>Comment:</strong> {escape(comment)}</p>"
            f"{SIGNATURE}"
        ),
    )
