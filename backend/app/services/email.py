"""Outgoing email for membership applications.

Sends HTML mail over SMTP with aiosmtplib. When no SMTP credentials are
configured the service logs and skips, so local development and tests
never need a mail server. Send failures are logged and reported as False;
they never fail the request that triggered them.
"""

import html
import logging
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from app.config import settings
from app.models.membership_application import ApplicationStatus, MembershipApplication

logger = logging.getLogger(__name__)

SUPPORT_EMAIL = "support@davel.library.com"
SUPPORT_PHONE = "+27 11 123 4567"


class EmailService:
    def __init__(
        self,
        host: str = settings.smtp_host,
        port: int = settings.smtp_port,
        user: str = settings.smtp_user,
        password: str = settings.smtp_password,
        from_email: str = settings.email_from,
        from_name: str = settings.email_from_name,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)

    async def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        if not self.is_configured:
            logger.warning("Email service not configured, skipping: %s", subject)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.user,
                password=self.password,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False

        logger.info("Sent email to %s: %s", to_email, subject)
        return True

    # ── Membership templates ────────────────────────────────

    async def send_application_received(self, application: MembershipApplication) -> bool:
        return await self.send_email(
            application.email,
            f"Membership Application Received - {application.reference}",
            application_received_html(application),
        )

    async def send_librarian_notification(self, application: MembershipApplication) -> bool:
        return await self.send_email(
            settings.librarian_email,
            f"New Membership Application - {application.reference}",
            librarian_notification_html(application),
        )

    async def send_status_update(self, application: MembershipApplication) -> bool:
        return await self.send_email(
            application.email,
            f"Membership Application {application.status.value.upper()} - {application.reference}",
            status_update_html(application),
        )


def get_email_service() -> EmailService:
    """FastAPI dependency; override in tests."""
    return EmailService()


def _e(value) -> str:
    """Applicant text, safe to place in HTML."""
    return html.escape(str(value))


def _address(app: MembershipApplication) -> str:
    return _e(f"{app.street}, {app.city}, {app.state} {app.zip_code}, {app.country}")


def _footer() -> str:
    return (
        f"<p>If you have any questions, contact us at "
        f'<a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a> or call {SUPPORT_PHONE}.</p>'
        "<p>Best regards,<br>The Davel Library Team</p>"
    )


def application_received_html(app: MembershipApplication) -> str:
    genres = ", ".join(app.genre_list) or "None selected"
    return f"""
<h1>Membership Application Received!</h1>
<h2>Hello {_e(app.first_name)} {_e(app.last_name)},</h2>
<p>Thank you for applying for membership at Davel Library! We have received
your application and it is currently under review.</p>
<h3>Application Details</h3>
<p><strong>Application ID:</strong> {app.reference}</p>
<p><strong>Application Fee:</strong> R{app.application_fee:.2f}</p>
<p><strong>Date Submitted:</strong> {datetime.utcnow():%Y-%m-%d}</p>
<h3>What Happens Next?</h3>
<ol>
  <li>Our team will review your application within 2-3 business days</li>
  <li>We will verify your documents and information</li>
  <li>You will receive an email with the final decision</li>
  <li>If approved, you'll receive your library card details</li>
</ol>
<h4>Application Summary</h4>
<p><strong>Email:</strong> {_e(app.email)}</p>
<p><strong>Phone:</strong> {_e(app.phone)}</p>
<p><strong>Address:</strong> {_address(app)}</p>
<p><strong>Preferred Genres:</strong> {_e(genres)}</p>
<p><strong>Reading Frequency:</strong> {_e(app.reading_frequency)}</p>
{_footer()}
"""


def librarian_notification_html(app: MembershipApplication) -> str:
    details = ""
    if app.has_disability and app.disability_details:
        details = f"<p><strong>Details:</strong> {_e(app.disability_details)}</p>"
    return f"""
<h1>New Membership Application</h1>
<p><strong>Application ID:</strong> {app.reference}</p>
<p><strong>Applicant:</strong> {_e(app.first_name)} {_e(app.last_name)}</p>
<p><strong>Email:</strong> {_e(app.email)}</p>
<p><strong>Phone:</strong> {_e(app.phone)}</p>
<p><strong>Application Fee:</strong> R{app.application_fee:.2f}</p>
<p><strong>Address:</strong> {_address(app)}</p>
<p><strong>Date of Birth:</strong> {_e(app.date_of_birth)}</p>
<p><strong>Gender:</strong> {_e(app.gender)}</p>
<p><strong>Preferred Genres:</strong> {_e(", ".join(app.genre_list) or "None selected")}</p>
<p><strong>Reading Frequency:</strong> {_e(app.reading_frequency)}</p>
<p><strong>Accessibility Needs:</strong> {"Yes" if app.has_disability else "No"}</p>
{details}
<h3>Documents</h3>
<p><strong>ID Documents:</strong> {_e(app.id_document or "Not provided")}</p>
<p><strong>Proof of Address:</strong> {_e(app.proof_of_address or "Not provided")}</p>
<p><strong>Additional Documents:</strong> {_e(app.additional_documents or "None")}</p>
<p>Please review this application and take appropriate action.</p>
"""


_STATUS_HEADLINES = {
    ApplicationStatus.APPROVED: "Application Approved!",
    ApplicationStatus.REJECTED: "Application Update",
}

_STATUS_BODIES = {
    ApplicationStatus.APPROVED: (
        "<h3>Congratulations! Your membership has been approved!</h3>"
        "<ol><li>Your library card will be mailed to your address within 5-7 business days</li>"
        "<li>You can start using our online services immediately</li>"
        "<li>Visit any of our branches to activate your physical card</li></ol>"
    ),
    ApplicationStatus.REJECTED: (
        "<h3>Application Review Complete</h3>"
        "<p>Unfortunately, we are unable to approve your application at this time.</p>"
    ),
}


def status_update_html(app: MembershipApplication) -> str:
    headline = _STATUS_HEADLINES.get(app.status, "Application Under Review")
    body = _STATUS_BODIES.get(
        app.status,
        "<p>Your application is currently being reviewed by our team. "
        "We will notify you as soon as the review is complete.</p>",
    )
    notes = f"<p><strong>Review Notes:</strong> {_e(app.review_notes)}</p>" if app.review_notes else ""
    return f"""
<h1>{headline}</h1>
<h2>Hello {_e(app.first_name)} {_e(app.last_name)},</h2>
<p><strong>Status:</strong> {app.status.value.upper()}</p>
<p><strong>Application ID:</strong> {app.reference}</p>
{notes}
{body}
{_footer()}
"""
