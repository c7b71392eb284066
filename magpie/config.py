# magpie/config.py
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    # Server
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///magpie.db"))
    google_client_id: str = field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_ID", ""))
    google_allowed_audiences: List[str] = field(
        default_factory=lambda: _split(os.getenv("GOOGLE_ALLOWED_AUDIENCES"))
    )
    google_issuers: List[str] = field(
        default_factory=lambda: _split(os.getenv("GOOGLE_ISSUERS")) or [
            "accounts.google.com",
            "https://accounts.google.com",
        ]
    )
    # ISBNs readable without a credential; none by default
    public_records: List[str] = field(default_factory=lambda: _split(os.getenv("MAGPIE_PUBLIC_RECORDS")))
    cors_origins: List[str] = field(
        default_factory=lambda: _split(os.getenv("MAGPIE_CORS_ORIGINS")) or [
            "http://localhost:5173",
            "http://localhost:8000",
            "http://127.0.0.1:5173",
        ]
    )

    # Client
    api_url: str = field(default_factory=lambda: os.getenv("MAGPIE_API_URL", "http://localhost:8000/api"))
    local_db_path: str = field(
        default_factory=lambda: os.getenv(
            "MAGPIE_LOCAL_DB", os.path.join(os.path.expanduser("~"), ".magpie", "local.db")
        )
    )
    token: Optional[str] = field(default_factory=lambda: os.getenv("MAGPIE_TOKEN"))
    http_timeout: float = field(default_factory=lambda: float(os.getenv("MAGPIE_HTTP_TIMEOUT", "10")))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def audiences(self) -> List[str]:
        """Audiences accepted on identity tokens."""
        audiences = list(self.google_allowed_audiences)
        if self.google_client_id and self.google_client_id not in audiences:
            audiences.insert(0, self.google_client_id)
        return audiences
