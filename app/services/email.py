"""
Reportes de errores por email.

Cuando ENABLE_ERROR_EMAILS está activo, el handler de excepciones no controladas
de app.main envía un resumen del request y el traceback a ERROR_TO.
"""

import os
import smtplib
import logging
import traceback
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from datetime import datetime

logger = logging.getLogger(__name__)


def error_emails_enabled() -> bool:
    return os.getenv("ENABLE_ERROR_EMAILS", "false").lower() in {"1", "true", "yes"}


class EmailService:
    """Envío de emails vía SMTP"""

    def __init__(self):
        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER")
        self.smtp_pass = os.getenv("SMTP_PASS")
        self.smtp_use_tls = os.getenv("SMTP_USE_TLS", "true").lower() in {
            "1",
            "true",
            "yes",
        }
        self.from_addr = os.getenv("ERROR_FROM", "errors@borapo.local")
        self.to_addrs = [
            addr.strip()
            for addr in os.getenv("ERROR_TO", "").split(",")
            if addr.strip()
        ]

    def is_configured(self) -> bool:
        return bool(
            self.smtp_host and self.smtp_user and self.smtp_pass and self.to_addrs
        )

    def send_error_email(self, error_data: dict) -> bool:
        """
        Envía el reporte de un error no controlado.

        Args:
            error_data: Datos del error
                - path: Ruta del request
                - method: Método HTTP
                - client: IP del cliente
                - exception: Excepción capturada
                - timestamp: Momento del error (opcional)

        Returns:
            bool: True si el email se envió
        """
        if not self.is_configured():
            logger.warning("Servicio de email sin configurar, no se envía el reporte")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"[Borapo Backend][{os.getenv('ENV', 'development')}] ERROR"
        msg["From"] = self.from_addr
        msg["To"] = ", ".join(self.to_addrs)
        msg.attach(MIMEText(self._generate_error_text(error_data), "plain", "utf-8"))
        msg.attach(MIMEText(self._generate_error_html(error_data), "html", "utf-8"))

        try:
            server = smtplib.SMTP(self.smtp_host, self.smtp_port)
            if self.smtp_use_tls:
                server.starttls()
            server.login(self.smtp_user, self.smtp_pass)
            server.send_message(msg)
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"No se pudo enviar el email de error: {e}")
            return False

        logger.info(f"Email de error enviado a {', '.join(self.to_addrs)}")
        return True

    def _format_traceback(self, exception) -> str:
        if exception is None:
            return "No traceback available"
        return "".join(
            traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )
        )

    def _generate_error_text(self, error_data: dict) -> str:
        timestamp = error_data.get(
            "timestamp", datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        )
        return (
            f"{error_data.get('method', 'Unknown')} {error_data.get('path', 'Unknown')}\n"
            f"Cliente: {error_data.get('client', 'Unknown')}\n"
            f"Fecha: {timestamp} UTC\n\n"
            f"{self._format_traceback(error_data.get('exception'))}"
        )

    def _generate_error_html(self, error_data: dict) -> str:
        text = escape(self._generate_error_text(error_data))
        return f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="UTF-8"></head>
        <body style="font-family: sans-serif; background: #f8f9fa; padding: 20px;">
            <h2 style="color: #dc3545;">Error Report</h2>
            <pre style="background: #1e1e1e; color: #d4d4d4; padding: 16px; border-radius: 6px; font-size: 12px;">{text}</pre>
        </body>
        </html>
        """


email_service = EmailService()
