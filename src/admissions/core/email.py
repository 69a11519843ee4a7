"""
Email Service using Resend

Notifies applicants when an administrator reviews one of their documents or
changes their application status. Sending failures are logged and reported
as False; callers never fail a request because an email could not be sent.
"""

import asyncio
import logging
from html import escape

import resend

from admissions.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #1a365d; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .notes-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .notes-box p { margin: 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""

_DOCUMENT_STATUS_TEXT = {
    "UPLOADED": "has been returned to the review queue",
    "VALIDATION_PENDING": "is awaiting validation",
    "VALIDATION_FAILED": "could not be validated and needs your attention",
    "VALIDATED": "has been validated",
    "REJECTED": "has been rejected",
}

_APPLICATION_STATUS_TEXT = {
    "PENDING": "is pending review",
    "APPROVED": "has been approved",
    "REJECTED": "has been rejected",
    "ACTIVE": "is now active",
}


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent (or logged, when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _render(title: str, greeting_name: str | None, body: str, notes: str | None) -> str:
    greeting = f"Hello {escape(greeting_name)}," if greeting_name else "Hello,"
    notes_html = ""
    if notes:
        notes_html = f"""
            <div class="notes-box">
                <p><strong>Reviewer notes:</strong></p>
                <p>{escape(notes)}</p>
            </div>"""

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>

            <p>{greeting}</p>

            <p>{body}</p>
            {notes_html}

            <a href="{settings.frontend_url}/dashboard" class="button">Open My Dashboard</a>

            <div class="footer">
                <p>Admissions Office</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_document_status_update(
    to_email: str,
    applicant_name: str | None,
    document_label: str,
    new_status: str,
    notes: str | None,
) -> bool:
    """Tell an applicant that one of their documents was reviewed."""
    outcome = _DOCUMENT_STATUS_TEXT.get(new_status, f"is now {new_status}")
    body = f"Your document <strong>{escape(document_label)}</strong> {outcome}."
    if new_status in ("VALIDATION_FAILED", "REJECTED"):
        body += " Please upload a corrected version from your dashboard."

    return await send_email(
        to_email=to_email,
        subject=f"Your {document_label} {outcome}",
        html_content=_render("Document Review Update", applicant_name, body, notes),
    )


async def send_application_status_update(
    to_email: str,
    applicant_name: str | None,
    new_status: str,
) -> bool:
    """Tell an applicant that their application status changed."""
    outcome = _APPLICATION_STATUS_TEXT.get(new_status, f"is now {new_status}")
    body = f"Your application {outcome}."

    return await send_email(
        to_email=to_email,
        subject=f"Your application {outcome}",
        html_content=_render("Application Status Update", applicant_name, body, None),
    )
