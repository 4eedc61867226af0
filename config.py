import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        secret: str,
        session_hours: int,
        currency: str,
        recent_limit: int,
        admin_email: Optional[str] = None,
        admin_password: Optional[str] = None,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.secret = secret
        self.session_hours = session_hours
        self.currency = currency
        self.recent_limit = recent_limit
        self.admin_email = admin_email
        self.admin_password = admin_password


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("DAYBOOK_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "daybook.db"
    database_url = os.getenv("DAYBOOK_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("DAYBOOK_TIMEZONE", "Africa/Abidjan")
    secret = os.getenv(
        "DAYBOOK_SECRET",
        "5d0c8f7e1b2a49c3a6e4f09d7b13c2e8a1f6d4b9c0e7a2f3b8d5c1e6f9a0b4d7",
    )
    session_hours = int(os.getenv("DAYBOOK_SESSION_HOURS", "12"))
    currency = os.getenv("DAYBOOK_CURRENCY", "FCFA")
    recent_limit = int(os.getenv("DAYBOOK_RECENT_LIMIT", "5"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        secret=secret,
        session_hours=session_hours,
        currency=currency,
        recent_limit=recent_limit,
        admin_email=os.getenv("DAYBOOK_ADMIN_EMAIL") or None,
        admin_password=os.getenv("DAYBOOK_ADMIN_PASSWORD") or None,
    )
