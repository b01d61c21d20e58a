# ptbooking/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Config(BaseSettings):
    data_dir: Path = BASE_DIR / "data"
    log_level: str = "INFO"

    # ===== Google service account =====
    google_client_email: str = ""
    google_private_key: str = ""
    google_project_id: str = ""
    google_calendar_id: str = ""
    google_sheet_id: str = ""

    # ===== Telegram =====
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # ===== Admin =====
    admin_password: str = ""
    session_secret: str = "change-me"
    session_ttl_seconds: int = 43200  # 12 hours

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_private_key(self) -> str:
        # .env files usually carry the PEM with escaped newlines
        return self.google_private_key.replace("\\n", "\n")

    @property
    def resolved_data_dir(self) -> Path:
        path = self.data_dir
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


config = Config()
