# ptbooking/routers/settings.py
# POST requires the admin cookie; GET is public (the booking page reads it)

import logging

from fastapi import APIRouter, Body, Depends

from ..dependencies import get_notifier, get_settings_store, require_admin
from ..services.availability import SettingsStore
from ..services.calendar_day import now_kst
from ..services.notifications import TelegramNotifier, check_period_expiration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
def get_settings(
    store: SettingsStore = Depends(get_settings_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    settings = store.load()
    check_period_expiration(settings, now_kst().date(), notifier)
    return settings.to_document()


@router.post("", dependencies=[Depends(require_admin)])
def save_settings(
    document: dict = Body(...),
    store: SettingsStore = Depends(get_settings_store),
):
    """Replace the whole document. 423 while another save holds the lock."""
    store.save(document)
    return {"message": "Settings saved."}
