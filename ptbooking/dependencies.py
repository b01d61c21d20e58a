# ptbooking/dependencies.py
"""
Service singletons for FastAPI `Depends`.

Tests swap them through `app.dependency_overrides`.
"""

from functools import lru_cache

from fastapi import Cookie, HTTPException, status

from .config import config
from .services.admin_auth import COOKIE_NAME, verify_token
from .services.availability import SettingsStore
from .services.google_calendar import GoogleCalendar
from .services.google_sheets import ReservationSheet
from .services.notifications import TelegramNotifier
from .services.reservations import ReservationGateway


@lru_cache
def get_settings_store() -> SettingsStore:
    return SettingsStore(config.resolved_data_dir)


@lru_cache
def get_notifier() -> TelegramNotifier:
    return TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)


@lru_cache
def get_reservation_gateway() -> ReservationGateway:
    return ReservationGateway(
        calendar=GoogleCalendar.from_config(config),
        sheet=ReservationSheet.from_config(config),
        store=get_settings_store(),
        notifier=get_notifier(),
    )


def is_admin(admin_token: str | None = Cookie(None, alias=COOKIE_NAME)) -> bool:
    return verify_token(admin_token, config.session_secret, config.session_ttl_seconds)


def require_admin(admin_token: str | None = Cookie(None, alias=COOKIE_NAME)) -> None:
    if not is_admin(admin_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin login required",
        )
