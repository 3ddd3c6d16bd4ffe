import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from clearcare.config import settings
from clearcare.core.logging import logger
from typing import List, Optional


async def send_email(
    to: List[str],
    subject: str,
    body: str,
    html_body: Optional[str] = None
) -> bool:
    """
    Send an email over SMTP.

    Args:
        to: List of recipient email addresses
        subject: Email subject
        body: Plain text email body
        html_body: Optional HTML email body

    Returns:
        bool: True if email sent successfully
    """
    if not settings.SMTP_USER:
        logger.info("SMTP not configured; skipping email delivery")
        return False

    message = MIMEMultipart("alternative")
    message["From"] = settings.EMAIL_FROM
    message["To"] = ", ".join(to)
    message["Subject"] = subject

    message.attach(MIMEText(body, "plain"))
    if html_body:
        message.attach(MIMEText(html_body, "html"))

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            start_tls=True,
        )
        logger.info(f"Email sent: {subject}")
        return True
    except aiosmtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {str(e)}")
        return False
    except aiosmtplib.SMTPException as e:
        logger.error(f"SMTP error sending '{subject}': {type(e).__name__}: {str(e)}")
        return False
    except OSError as e:
        logger.error(f"Could not reach SMTP server {settings.SMTP_HOST}:{settings.SMTP_PORT}: {str(e)}")
        return False


async def send_invitation_email(
    email: str,
    first_name: str,
    role: str,
    temporary_password: str,
) -> bool:
    """
    Send the account invitation to a user created by an administrator.

    Args:
        email: Recipient email address
        first_name: User's first name
        role: Assigned role
        temporary_password: One-time password to sign in with

    Returns:
        bool: True if email sent successfully
    """
    login_link = f"{settings.FRONTEND_URL}/login"

    subject = "You've been invited to ClearCare+"

    body = f"""
    Hello {first_name},

    An administrator created a ClearCare+ {role} account for you.

    Email: {email}
    Temporary password: {temporary_password}

    Sign in at {login_link} and change your password right away.

    ClearCare+ Team
    """

    html_body = f"""
    <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #0d9488;">Welcome to ClearCare+</h2>
                <p>Hello {first_name},</p>
                <p>An administrator created a ClearCare+ <strong>{role}</strong> account for you.</p>
                <div style="background-color: #f0fdfa; padding: 16px; border-radius: 6px;">
                    <p style="margin: 0;">Email: <strong>{email}</strong></p>
                    <p style="margin: 0;">Temporary password: <strong>{temporary_password}</strong></p>
                </div>
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{login_link}"
                       style="background-color: #0d9488; color: white; padding: 12px 30px;
                              text-decoration: none; border-radius: 5px; display: inline-block;">
                        Sign in
                    </a>
                </div>
                <p style="color: #666; font-size: 14px;">
                    Please change your password after signing in.
                </p>
            </div>
        </body>
    </html>
    """

    return await send_email([email], subject, body, html_body)


async def send_restore_notification_email(email: str, first_name: str) -> bool:
    """Tell a user their deactivated account has been restored."""
    subject = "Your ClearCare+ account has been restored"

    body = f"""
    Hello {first_name},

    Your ClearCare+ account has been reactivated by an administrator.
    You can sign in again at {settings.FRONTEND_URL}/login.

    ClearCare+ Team
    """

    return await send_email([email], subject, body)
