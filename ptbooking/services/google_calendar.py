"""
ptbooking/services/google_calendar.py

Google Calendar access for reservations.

Handles:
- Service-account credentials shared with the Sheets client
- Event listing by time range (paginated, single events expanded)
- Event get / insert / update

The calendar is the source of truth for which hours are taken.
"""

import logging
from datetime import datetime
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from ..config import Config
from ..exceptions import ExternalServiceError
from .calendar_day import CALENDAR_TIMEZONE

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/calendar",
]

TOKEN_URI = "https://oauth2.googleapis.com/token"

# .execute() failures that never reach an HTTP status
TRANSPORT_ERRORS = (GoogleAuthError, HttpLib2Error, OSError)
GOOGLE_ERRORS = (HttpError, *TRANSPORT_ERRORS)


def get_credentials(cfg: Config) -> service_account.Credentials:
    """Build service-account credentials from configuration."""
    if not cfg.google_client_email or not cfg.google_private_key:
        raise ExternalServiceError("Google service account is not configured")

    info = {
        "type": "service_account",
        "project_id": cfg.google_project_id,
        "client_email": cfg.google_client_email,
        "private_key": cfg.resolved_private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


class GoogleCalendar:
    """Thin wrapper over the Calendar v3 events resource for one calendar."""

    def __init__(self, service, calendar_id: str):
        self.service = service
        self.calendar_id = calendar_id

    @classmethod
    def from_config(cls, cfg: Config) -> "GoogleCalendar":
        if not cfg.google_calendar_id:
            raise ExternalServiceError("Google Calendar ID is not configured")
        service = build(
            "calendar", "v3",
            credentials=get_credentials(cfg),
            cache_discovery=False,
        )
        return cls(service, cfg.google_calendar_id)

    def list_events(
        self,
        time_min: datetime,
        time_max: Optional[datetime] = None,
    ) -> list[dict]:
        """All events overlapping [time_min, time_max), ordered by start."""
        params = {
            "calendarId": self.calendar_id,
            "timeMin": time_min.isoformat(),
            "singleEvents": True,
            "orderBy": "startTime",
            "timeZone": CALENDAR_TIMEZONE,
        }
        if time_max is not None:
            params["timeMax"] = time_max.isoformat()

        items: list[dict] = []
        try:
            while True:
                response = self.service.events().list(**params).execute()
                items.extend(response.get("items", []))
                page_token = response.get("nextPageToken")
                if not page_token:
                    break
                params["pageToken"] = page_token
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to list calendar events: {e}")
            raise ExternalServiceError("Failed to fetch calendar data") from e

        return items

    def get_event(self, event_id: str) -> Optional[dict]:
        """Event by id, or None if it does not exist."""
        try:
            return self.service.events().get(
                calendarId=self.calendar_id,
                eventId=event_id,
            ).execute()
        except HttpError as e:
            if e.resp.status in (404, 410):
                logger.warning(f"Calendar event not found: {event_id}")
                return None
            logger.error(f"Failed to get calendar event {event_id}: {e}")
            raise ExternalServiceError("Failed to fetch calendar event") from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Failed to get calendar event {event_id}: {e}")
            raise ExternalServiceError("Failed to fetch calendar event") from e

    def insert_event(self, body: dict) -> dict:
        try:
            created = self.service.events().insert(
                calendarId=self.calendar_id,
                body=body,
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to create calendar event: {e}")
            raise ExternalServiceError("Failed to create calendar event") from e

        logger.info(f"Created Google Calendar event: {created.get('id')}")
        return created

    def update_event(self, event_id: str, body: dict) -> dict:
        try:
            updated = self.service.events().update(
                calendarId=self.calendar_id,
                eventId=event_id,
                body=body,
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to update calendar event {event_id}: {e}")
            raise ExternalServiceError("Failed to update calendar event") from e

        logger.info(f"Updated Google Calendar event: {event_id}")
        return updated
