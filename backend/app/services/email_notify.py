"""
Send reservation confirmations by email via SMTP (Gmail or other).
Set SMTP_HOST, SMTP_USER, SMTP_PASSWORD (and optionally NOTIFY_FROM) in .env. Use an App Password for Gmail.
Without SMTP settings the message is logged instead of sent.
"""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from app.config import settings
from app.core.slots import to_event_time

logger = logging.getLogger(__name__)

SUBJECT = "Confirmation – Réservation jus de pomme"


def _from_address() -> str:
    if (settings.notify_from or "").strip():
        return settings.notify_from.strip()
    user = (settings.smtp_user or "").strip()
    if user:
        return f"Jus de pomme <{user}>"
    return "Jus de pomme <no-reply@localhost>"


def reservation_links(token: str, base_url: str) -> dict[str, str]:
    base = (base_url or "").rstrip("/")
    return {
        "view": f"{base}/r/{token}",
        "edit": f"{base}/r/{token}/edit",
        "cancel": f"{base}/r/{token}/cancel",
    }


def build_confirmation(reservation: dict[str, Any], base_url: str) -> tuple[str, str]:
    """Return (plain text, html) bodies for a reservation dict (names, phone, quantity, comment, start_at, location, date)."""
    links = reservation_links(reservation["token"], base_url)
    hhmm = to_event_time(reservation["start_at"]).strftime("%H:%M")
    details = [
        ("Lieu", reservation.get("location")),
        ("Date", reservation.get("date")),
        ("Heure", hhmm),
        ("Nom", f"{reservation.get('first_name', '')} {reservation.get('last_name', '')}".strip()),
        ("Téléphone", reservation.get("phone")),
        ("Quantité", reservation.get("quantity")),
    ]
    if reservation.get("comment"):
        details.append(("Commentaire", reservation["comment"]))

    lines = ["Merci pour votre réservation !", "", "Détails:"]
    lines += [f"- {label}: {value}" for label, value in details]
    lines += ["", f"Modifier: {links['edit']}", f"Annuler: {links['cancel']}"]
    text = "\n".join(lines) + "\n"

    items = "".join(f"<li><b>{label}:</b> {html.escape(str(value))}</li>" for label, value in details)
    body_html = (
        "<div style='font-family:Arial,sans-serif'>"
        f"<h2>{SUBJECT}</h2>"
        f"<ul>{items}</ul>"
        f"<p><a href=\"{links['edit']}\">Modifier ma réservation</a> | "
        f"<a href=\"{links['cancel']}\">Annuler ma réservation</a></p>"
        "</div>"
    )
    return text, body_html


def send_confirmation_email(
    to_email: str,
    reservation: dict[str, Any],
    base_url: str,
    *,
    from_email: str | None = None,
) -> bool:
    """
    Send the booking confirmation with edit/cancel links.
    Returns True if sent, False if skipped or failed. Never raises for SMTP problems.
    """
    to_email = (to_email or "").strip()
    if not to_email:
        return False
    text, body_html = build_confirmation(reservation, base_url)
    host = (settings.smtp_host or "").strip()
    user = (settings.smtp_user or "").strip()
    password = (settings.smtp_password or "").strip()
    if not host or not user or not password:
        logger.info("SMTP not configured; confirmation for %s not sent:\n%s", to_email, text)
        return False
    from_addr = (from_email or "").strip() or _from_address()
    msg = MIMEMultipart("alternative")
    msg["Subject"] = SUBJECT
    msg["From"] = from_addr
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(body_html, "html"))
    try:
        with smtplib.SMTP(host, settings.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(user, password)
            server.sendmail(user, [to_email], msg.as_string())
        logger.info("Confirmation email sent to %s for reservation %s", to_email, reservation.get("id"))
        return True
    except Exception as e:
        logger.exception("Failed to send confirmation email: %s", e)
        return False
