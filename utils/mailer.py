import smtplib
from email.message import EmailMessage
from fastapi import status
from starlette.concurrency import run_in_threadpool
import logging

from config import SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, EMAIL_FROM, ENVIRONMENT, ACTIVATION_CODE_TTL_MINUTES
from utils.app_error import AppError

logger = logging.getLogger(__name__)

def render_activation_email(name, code):
    display_name = name or "کاربر"
    return f"""
<div dir="rtl" style="font-family: Tahoma, sans-serif; text-align: right;">
  <h2>سلام {display_name}،</h2>
  <p>به پارس‌فلیکس خوش آمدید. کد فعال‌سازی حساب شما:</p>
  <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{code}</p>
  <p>این کد تا {ACTIVATION_CODE_TTL_MINUTES} دقیقه معتبر است.</p>
</div>
"""

def _send(message: EmailMessage):
    with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=15) as smtp:
        smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASSWORD)
        smtp.send_message(message)

async def send_email(to: str, subject: str, html: str):
    if not SMTP_HOST:
        if ENVIRONMENT == "production":
            logger.error("SMTP is not configured in production")
            raise AppError("Email service is not configured.", status.HTTP_500_INTERNAL_SERVER_ERROR)
        # Development: log instead of sending
        logger.info(f"[email simulation] to={to} subject={subject}")
        return False

    message = EmailMessage()
    message["From"] = EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content("Please view this email in an HTML capable client.")
    message.add_alternative(html, subtype="html")

    try:
        await run_in_threadpool(_send, message)
        logger.info(f"Email sent to {to}")
        return True
    except Exception as e:
        logger.error(f"Error sending email to {to}: {str(e)}")
        raise AppError("Failed to send email. Please try again later.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def send_activation_email(to: str, name: str, code: str):
    if not SMTP_HOST and ENVIRONMENT != "production":
        logger.info(f"[email simulation] activation code for {to}: {code}")
    return await send_email(to, "کد فعال‌سازی حساب پارس‌فلیکس", render_activation_email(name, code))
