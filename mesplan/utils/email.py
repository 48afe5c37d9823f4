"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP_HOST가 비어 있으면 메일 발송이 비활성화됩니다.
(E-mail is disabled while SMTP_HOST is empty.)
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from mesplan.config import settings


def email_enabled() -> bool:
    """SMTP 설정 여부 — Whether outgoing e-mail is configured."""
    return bool(settings.SMTP_HOST and settings.SMTP_FROM_EMAIL)


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> None:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소 (Recipient address)
        subject: 제목 (Subject)
        html: HTML 본문 (HTML body)
        text: 플레인텍스트 본문, 선택 (Optional plain-text alternative)

    Raises:
        aiosmtplib.SMTPException: 발송 실패 (Delivery failure)
    """
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
    )
