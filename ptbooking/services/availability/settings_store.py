# ptbooking/services/availability/settings_store.py
"""
File storage for the availability settings document.

Files (under the data directory):
    settings.json         current document
    settings.lock         advisory lock, flock(LOCK_EX | LOCK_NB) while saving
    settings.backup.json  previous document, refreshed before every save
    settings.corrupt.json last unreadable document, kept for manual recovery

Writers never queue: a held lock surfaces as ResourceBusyError and the
caller retries. Readers lock only to seed the defaults; writes are atomic
(temp file + rename).
"""

import fcntl
import json
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError as PydanticValidationError

from ...exceptions import ResourceBusyError, SettingsValidationError
from ...schemas.settings import AvailabilitySettings

logger = logging.getLogger(__name__)

DEFAULT_NOTICE = (
    "* Available hours\n"
    "Weekdays - 2 PM to 10 PM\n"
    "Weekends - 10 AM to 5 PM"
)


def default_settings() -> AvailabilitySettings:
    return AvailabilitySettings.model_validate({
        "disabledDates": [],
        "holidays": [],
        "availableHours": {
            "weekday": {"start": 14, "end": 22},
            "weekend": {"start": 10, "end": 17},
            "holiday": {"start": 10, "end": 17},
            "notice": DEFAULT_NOTICE,
            "sameDay": {"enabled": True, "minHoursAfter": 2},
        },
        "reservationPeriod": {"startDate": None, "endDate": None},
    })


def format_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        msg = err["msg"].removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


class SettingsStore:
    """Single-document store with an advisory lock around writes."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / "settings.json"
        self.lock_path = self.data_dir / "settings.lock"
        self.backup_path = self.data_dir / "settings.backup.json"
        self.corrupt_path = self.data_dir / "settings.corrupt.json"

    # ── Lock ─────────────────────────────────────────────────────────────

    @contextmanager
    def lock(self) -> Iterator[None]:
        """
        Hold the exclusive settings lock for the duration of the block.

        Raises:
            ResourceBusyError: if another writer holds the lock
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise ResourceBusyError("Another settings update is in progress, try again shortly")

        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def clear_stale_lock(self) -> bool:
        """Remove a lock file left behind by a previous run. Startup only."""
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            return False
        logger.warning(f"Removed stale settings lock: {self.lock_path}")
        return True

    # ── Read ─────────────────────────────────────────────────────────────

    def load(self) -> AvailabilitySettings:
        """Current document; seeds the defaults when missing or unreadable."""
        if not self.path.exists():
            logger.info(f"No settings file at {self.path}, seeding defaults")
            return self._seed()

        try:
            return self._read()
        except (OSError, ValueError) as e:
            logger.warning(f"Settings file unreadable, seeding defaults: {e}")
            return self._seed()

    def _read(self) -> AvailabilitySettings:
        # JSONDecodeError and pydantic's ValidationError are ValueErrors
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        return AvailabilitySettings.model_validate(raw)

    # ── Write ────────────────────────────────────────────────────────────

    def save(self, document: Union[dict, AvailabilitySettings]) -> AvailabilitySettings:
        """
        Validate and replace the whole document.

        Raises:
            ResourceBusyError: lock held by another writer
            SettingsValidationError: document rejected, nothing written
        """
        with self.lock():
            if isinstance(document, AvailabilitySettings):
                settings = document
            else:
                try:
                    settings = AvailabilitySettings.model_validate(document)
                except PydanticValidationError as e:
                    message = format_validation_error(e)
                    logger.warning(f"Settings rejected: {message}")
                    raise SettingsValidationError(message) from None

            self._backup()
            self._write(settings)

        logger.info("Settings saved")
        return settings

    def _seed(self) -> AvailabilitySettings:
        """
        Persist the defaults under the lock, unless a writer got there first.

        With the lock held elsewhere the defaults are served but not written.
        """
        settings = default_settings()
        try:
            with self.lock():
                if self.path.exists():
                    try:
                        return self._read()
                    except (OSError, ValueError) as e:
                        logger.error(f"Settings file unreadable, re-seeding defaults: {e}")
                        self._preserve_corrupt()
                self._write(settings)
        except ResourceBusyError:
            logger.warning("Settings lock busy, serving defaults without persisting")
        return settings

    def _backup(self) -> None:
        if not self.path.exists():
            return
        try:
            shutil.copyfile(self.path, self.backup_path)
        except OSError as e:
            logger.warning(f"Settings backup failed, saving anyway: {e}")

    def _preserve_corrupt(self) -> None:
        try:
            shutil.copyfile(self.path, self.corrupt_path)
        except OSError as e:
            logger.warning(f"Could not keep corrupt settings file: {e}")

    def _write(self, settings: AvailabilitySettings) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.data_dir, prefix=".settings.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(settings.to_document(), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
