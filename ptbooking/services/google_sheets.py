"""
ptbooking/services/google_sheets.py

Audit log of reservations in a Google Sheet.

Sheet "reservations", columns A..E:
    date (YYYY-MM-DD) | time (HH:00) | memberId | memberName | changeHistory

Rows are appended on booking and updated in place on reschedule. The sheet
is for humans; conflict detection never reads it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from googleapiclient.discovery import build

from ..config import Config
from ..exceptions import ExternalServiceError
from .google_calendar import GOOGLE_ERRORS, get_credentials

logger = logging.getLogger(__name__)

SHEET_NAME = "reservations"


@dataclass
class AuditRow:
    date: str
    time: str
    member_id: str
    member_name: str
    change_history: Optional[str] = None

    @classmethod
    def from_values(cls, values: list) -> "AuditRow":
        padded = [str(v) for v in values] + [""] * (5 - len(values))
        return cls(
            date=padded[0],
            time=padded[1],
            member_id=padded[2],
            member_name=padded[3],
            change_history=padded[4] or None,
        )

    def to_values(self) -> list[str]:
        values = [self.date, self.time, self.member_id, self.member_name]
        if self.change_history:
            values.append(self.change_history)
        return values

    def matches(self, member_id: str, date: str, time: str) -> bool:
        return self.member_id == member_id and self.date == date and self.time == time


class ReservationSheet:
    """Append/read/update rows of the reservations sheet."""

    def __init__(self, service, spreadsheet_id: str, sheet_name: str = SHEET_NAME):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    @classmethod
    def from_config(cls, cfg: Config) -> "ReservationSheet":
        if not cfg.google_sheet_id:
            raise ExternalServiceError("Google Sheet ID is not configured")
        service = build(
            "sheets", "v4",
            credentials=get_credentials(cfg),
            cache_discovery=False,
        )
        return cls(service, cfg.google_sheet_id)

    @property
    def _range(self) -> str:
        return f"{self.sheet_name}!A:E"

    def append_row(self, row: AuditRow) -> None:
        try:
            self.service.spreadsheets().values().append(
                spreadsheetId=self.spreadsheet_id,
                range=self._range,
                valueInputOption="RAW",
                body={"values": [row.to_values()]},
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to append audit row: {e}")
            raise ExternalServiceError("Failed to append reservation to sheet") from e

    def get_rows(self) -> list[AuditRow]:
        try:
            response = self.service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=self._range,
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to read audit rows: {e}")
            raise ExternalServiceError("Failed to read reservation sheet") from e

        return [AuditRow.from_values(values) for values in response.get("values", [])]

    def update_row(self, index: int, row: AuditRow) -> None:
        """Overwrite the row at 0-based `index` (sheet row index + 1)."""
        number = index + 1
        values = row.to_values()
        values += [""] * (5 - len(values))
        try:
            self.service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{self.sheet_name}!A{number}:E{number}",
                valueInputOption="RAW",
                body={"values": [values]},
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to update audit row {number}: {e}")
            raise ExternalServiceError("Failed to update reservation in sheet") from e
