"""
ptbooking/services/notifications.py

Telegram notifications to the studio's chat.

Fire-and-forget: failures are logged, never retried and never reach the
booking flow. HTML parse_mode.
"""

import html
import logging
import threading
from datetime import date
from typing import Optional

import httpx

from ..schemas.settings import AvailabilitySettings

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
SEND_TIMEOUT = 5.0

# Days before reservationPeriod.endDate that trigger an expiry notice
EXPIRY_WEEK_NOTICE = 7
EXPIRY_IMMINENT_DAYS = 3


class TelegramNotifier:
    """Sends text messages to one fixed chat via the Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        client: Optional[httpx.Client] = None,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.client = client or httpx.Client(timeout=SEND_TIMEOUT)
        self._sent_keys: set[str] = set()
        self._sent_lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def send(self, text: str) -> bool:
        """Send a message; returns False on any failure."""
        if not self.configured:
            logger.warning("Telegram is not configured, notification skipped")
            return False

        try:
            resp = self.client.post(
                f"{TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage",
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "parse_mode": "HTML",
                },
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Telegram notification failed: {e}")
            return False

        return True

    def send_once(self, key: str, text: str) -> bool:
        """Send unless a message with the same key already went out from this process."""
        with self._sent_lock:
            if key in self._sent_keys:
                return False
            self._sent_keys.add(key)
        return self.send(text)


# ============================================================
# FORMATTERS
# ============================================================

def format_day(day: date) -> str:
    """'Monday, May 6, 2024'."""
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


def format_booking_created(day: date, time: str, member_name: str, member_id: str) -> str:
    return (
        "🆕 <b>New reservation!</b>\n\n"
        f"📅 Date: {format_day(day)}\n"
        f"⏰ Time: {time}\n"
        f"👤 Member: {html.escape(member_name)}\n"
        f"🆔 Member ID: {html.escape(member_id)}"
    )


def format_booking_rescheduled(
    old_day: date,
    old_time: str,
    new_day: date,
    new_time: str,
    member_name: str,
    member_id: str,
) -> str:
    return (
        "🔄 <b>Reservation changed!</b>\n\n"
        f"👤 Member: {html.escape(member_name)}\n"
        f"🆔 Member ID: {html.escape(member_id)}\n\n"
        "<b>Before</b>\n"
        f"📅 Date: {format_day(old_day)}\n"
        f"⏰ Time: {old_time}\n\n"
        "<b>After</b>\n"
        f"📅 Date: {format_day(new_day)}\n"
        f"⏰ Time: {new_time}"
    )


def format_period_expiry(end_date: date, days_left: int) -> Optional[str]:
    """Expiry notice for the given distance, or None if no notice is due."""
    if days_left == EXPIRY_WEEK_NOTICE:
        return (
            "⚠️ Reservation period ends in one week\n\n"
            f"Ends: {format_day(end_date)}\n"
            f"Days left: {days_left}"
        )
    if 0 < days_left <= EXPIRY_IMMINENT_DAYS:
        return (
            "⚠️ Reservation period ending soon\n\n"
            f"Ends: {format_day(end_date)}\n"
            f"Days left: {days_left}"
        )
    if days_left == 0:
        return (
            "🚨 Reservation period ends today\n\n"
            f"Ends: {format_day(end_date)}"
        )
    return None


def check_period_expiration(
    settings: AvailabilitySettings,
    today: date,
    notifier: TelegramNotifier,
) -> Optional[str]:
    """
    Notify when the reservation period is about to run out.

    Returns the message text if a notice was due.
    """
    period = settings.reservation_period
    if period is None or period.end_date is None:
        return None

    days_left = (period.end_date - today).days
    text = format_period_expiry(period.end_date, days_left)
    if text is None:
        return None

    key = f"period_expiry:{period.end_date.isoformat()}:{today.isoformat()}"
    try:
        notifier.send_once(key, text)
    except Exception:
        logger.exception("Period expiry notification failed")
    return text
