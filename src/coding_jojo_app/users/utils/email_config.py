import logging
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

PROVIDER = "SendGrid"


def _layout(title: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <div style="background: #667eea; padding: 24px; text-align: center;">
        <h1 style="color: white; margin: 0;">{title}</h1>
        <p style="color: white; margin: 8px 0 0 0;">Coding Jojo Instructor Verification</p>
      </div>
      <div style="padding: 24px; background: #f9f9f9; color: #444; line-height: 1.6;">{body}</div>
    </div>
    """


async def send_email(email: str, subject: str, html: str):
    """
    Send an HTML email through SendGrid.
    Raises UpstreamFailure when the provider rejects or cannot be reached.
    """
    if not config.SENDGRID_API_KEY:
        if config.DEBUG:
            logger.info(f"SendGrid not configured, skipping email to {email}: {subject}")
            return
        raise UpstreamFailure(PROVIDER, "email delivery is not configured")

    message = Mail(
        from_email=config.SENDER_EMAIL,
        to_emails=email,
        subject=subject,
        html_content=html,
    )
    try:
        sg = SendGridAPIClient(config.SENDGRID_API_KEY)
        response = sg.send(message)
    except Exception as e:
        logger.error(f"Error sending email to {email}: {str(e)}")
        raise UpstreamFailure(PROVIDER, str(e))

    if response.status_code >= 400:
        logger.error(f"SendGrid Error Response: {response.status_code} {response.body}")
        raise UpstreamFailure(PROVIDER, f"status {response.status_code}")
    logger.info(f"Email sent to {email}. Status: {response.status_code}")


async def send_verification_code_email(email: str, code: str):
    body = f"""
        <h2>Verify Your Email Address</h2>
        <p>Please enter the following verification code to verify your email address:</p>
        <p style="font-size: 32px; letter-spacing: 5px; color: #667eea; text-align: center;"><b>{code}</b></p>
        <p>This code will expire in {config.CODE_TTL_MINUTES} minutes.
        If you didn't request this verification, please ignore this email.</p>
    """
    await send_email(email, "Coding Jojo - Email Verification Code", _layout("Email Verification", body))


async def notify_by_email(email: str, subject: str, title: str, body: str) -> bool:
    """
    Best-effort notification after a state change has already been committed.
    Delivery failures are logged and reported through the return value.
    """
    try:
        await send_email(email, subject, _layout(title, body))
        return True
    except UpstreamFailure as e:
        logger.error(f"Notification email '{subject}' to {email} failed: {e.detail}")
        return False


def submission_body(name: str, email: str, progress: int, certificates: int) -> str:
    return f"""
        <h2>New Instructor Verification Submission</h2>
        <p><b>Instructor:</b> {name} ({email})</p>
        <p><b>Progress:</b> {progress}% complete</p>
        <p><b>Education certificates:</b> {certificates} uploaded</p>
        <p>Please review the submission in the admin panel.</p>
    """


def approval_body(name: str, feedback: str | None) -> str:
    extra = f"<p><b>Feedback:</b> {feedback}</p>" if feedback else ""
    return f"""
        <h2>Congratulations, {name}!</h2>
        <p>Your instructor verification has been approved. You can now create and publish courses.</p>
        {extra}
        <p><a href="{config.FRONTEND_URL}/teacher/dashboard">Start Teaching Now</a></p>
    """


def rejection_body(name: str, reason: str, feedback: str | None, allow_resubmission: bool) -> str:
    extra = f"<p><b>Additional feedback:</b> {feedback}</p>" if feedback else ""
    if allow_resubmission:
        closing = (
            f'<p>You can resubmit after addressing these issues: '
            f'<a href="{config.FRONTEND_URL}/teacher/verification">Update Verification</a></p>'
        )
    else:
        closing = "<p>This application cannot be resubmitted. Please contact support if you have questions.</p>"
    return f"""
        <h2>Hi {name}, your verification requires attention</h2>
        <p><b>Issues found:</b> {reason}</p>
        {extra}
        {closing}
    """


def info_request_body(name: str, message: str) -> str:
    return f"""
        <h2>We Need More Information</h2>
        <p>Hi {name}, we need some additional information to continue reviewing your application.</p>
        <p><b>Required information:</b> {message}</p>
        <p><a href="{config.FRONTEND_URL}/teacher/verification">Provide Information</a></p>
    """


def suspension_body(name: str, reason: str, duration_days: int | None) -> str:
    duration = f"<p><b>Duration:</b> {duration_days} days</p>" if duration_days else ""
    return f"""
        <h2>Verification Suspended</h2>
        <p>Dear {name}, your instructor verification has been suspended.</p>
        <p><b>Reason:</b> {reason}</p>
        {duration}
        <p>You may contact support if you believe this was made in error.</p>
    """
