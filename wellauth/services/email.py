"""
Email service untuk WellAuth.
Menangani notifikasi keamanan: link reset password, akun terkunci, dan konfirmasi reset.

Pengiriman email adalah side channel best-effort: method ``notify`` tidak
pernah raise, kegagalan hanya di-log. Service memanggil ``dispatch`` sehingga
response tidak pernah menunggu SMTP.
"""

from datetime import datetime, timezone
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from functools import partial
from pathlib import Path
from typing import Optional, Dict, Any, Set, Tuple

import jinja2

from wellauth.core.config import settings
from wellauth.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"

# Referensi ke task notifikasi yang masih berjalan
_pending_notifications: Set[asyncio.Task] = set()


async def wait_for_notifications(timeout: Optional[float] = None) -> None:
    """
    Tunggu notifikasi yang sedang dikirim (dipakai saat shutdown).

    Args:
        timeout: Batas waktu tunggu dalam detik, None untuk tanpa batas
    """
    if not _pending_notifications:
        return
    _, pending = await asyncio.wait(set(_pending_notifications), timeout=timeout)
    if pending:
        logger.warning(f"{len(pending)} notification(s) still pending")


class EmailService:
    """
    Service class untuk email operations.
    Menangani template rendering dan email sending.
    """

    def __init__(self):
        """Initialize email service dengan template engine."""
        self.template_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=jinja2.select_autoescape(["html"])
        )

        # Base context untuk semua email
        self.base_context = {
            "app_name": settings.APP_NAME,
            "support_email": settings.EMAIL_FROM_ADDRESS,
            "year": datetime.now().year
        }

    def render(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """
        Render pasangan template HTML dan text.

        Args:
            template_name: Nama template tanpa ekstensi
            context: Context tambahan

        Returns:
            Tuple (html_body, text_body)
        """
        full_context = {**self.base_context, **context}
        html_body = self.template_env.get_template(f"{template_name}.html").render(**full_context)
        text_body = self.template_env.get_template(f"{template_name}.txt").render(**full_context)
        return html_body, text_body

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Send email menggunakan SMTP.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_body: HTML content
            text_body: Plain text content (optional)

        Returns:
            True jika email terkirim, False jika pengiriman dinonaktifkan

        Raises:
            ServiceUnavailableError: Jika SMTP service tidak tersedia
        """
        if not settings.EMAIL_ENABLED:
            logger.info(f"Email delivery disabled, skipping '{subject}' to {to_email}")
            return False

        # Run in thread pool karena smtplib blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(
                self._send_email_sync,
                to_email=to_email,
                subject=subject,
                html_body=html_body,
                text_body=text_body
            )
        )

    def _send_email_sync(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg["To"] = to_email

        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            if settings.SMTP_SSL:
                server = smtplib.SMTP_SSL(
                    settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
                )
            else:
                server = smtplib.SMTP(
                    settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
                )
                if settings.SMTP_TLS:
                    server.starttls()

            try:
                if settings.SMTP_USER and settings.SMTP_PASSWORD:
                    server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.send_message(msg, to_addrs=[to_email])
            finally:
                server.quit()

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {to_email}: {e}")
            raise ServiceUnavailableError("Email service temporarily unavailable")

        return True

    async def send_password_reset_email(
        self,
        email: str,
        name: str,
        reset_token: str,
        expires_minutes: int
    ) -> bool:
        """
        Send password reset email.

        Args:
            email: User email
            name: Nama untuk sapaan
            reset_token: Plaintext token (hanya ada di email ini)
            expires_minutes: Masa berlaku token

        Returns:
            True jika berhasil
        """
        reset_url = f"{settings.password_reset_url}?token={reset_token}"
        html_body, text_body = self.render("password_reset", {
            "name": name,
            "reset_url": reset_url,
            "expires_minutes": expires_minutes
        })

        return await self.send_email(
            to_email=email,
            subject=f"Reset your {settings.APP_NAME} password",
            html_body=html_body,
            text_body=text_body
        )

    async def send_account_locked_email(
        self,
        email: str,
        name: str,
        unlock_at: datetime,
        reason: str
    ) -> bool:
        """
        Send account locked notification.

        Args:
            email: User email
            name: Nama untuk sapaan
            unlock_at: Waktu lockout berakhir
            reason: Alasan lockout

        Returns:
            True jika berhasil
        """
        html_body, text_body = self.render("account_locked", {
            "name": name,
            "unlock_at": unlock_at.strftime("%Y-%m-%d %H:%M UTC"),
            "reason": reason
        })

        return await self.send_email(
            to_email=email,
            subject=f"{settings.APP_NAME} Account Security Alert",
            html_body=html_body,
            text_body=text_body
        )

    async def send_password_changed_email(self, email: str, name: str) -> bool:
        """Send konfirmasi password berhasil di-reset."""
        html_body, text_body = self.render("password_changed", {
            "name": name,
            "changed_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        })

        return await self.send_email(
            to_email=email,
            subject=f"Your {settings.APP_NAME} password was changed",
            html_body=html_body,
            text_body=text_body
        )

    async def notify(self, method_name: str, **kwargs: Any) -> bool:
        """
        Kirim notifikasi secara best-effort.

        Args:
            method_name: Nama method ``send_*`` yang dipanggil
            **kwargs: Argumen untuk method tersebut

        Returns:
            True jika terkirim, False jika gagal atau dinonaktifkan
        """
        send = getattr(self, method_name)
        try:
            return await send(**kwargs)
        except ServiceUnavailableError as e:
            logger.warning(f"Notification {method_name} not delivered: {e.message}")
        except Exception:
            logger.exception(f"Notification {method_name} failed")
        return False

    def dispatch(self, method_name: str, **kwargs: Any) -> asyncio.Task:
        """
        Jadwalkan notifikasi di background tanpa menunggu pengiriman.

        Args:
            method_name: Nama method ``send_*`` yang dipanggil
            **kwargs: Argumen untuk method tersebut

        Returns:
            Task yang menjalankan ``notify``
        """
        task = asyncio.create_task(self.notify(method_name, **kwargs))
        _pending_notifications.add(task)
        task.add_done_callback(_pending_notifications.discard)
        return task
