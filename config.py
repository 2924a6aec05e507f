"""
Application configuration for the EM Luxury Cars store API.

Values come from the environment (a local .env file is honoured) and are
read once into a Settings instance.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

ADMIN_ID = "admin"
ADMIN_NAME = "Administrator"
ADMIN_EMAIL_ADDRESS = "admin@emcars.com"

DEMO_IDENTITY = {
    "google_id": "demo-user-123",
    "name": "Demo User",
    "email": "demo@example.com",
    "picture": "https://ui-avatars.com/api/?name=Demo+User&background=0D8ABC&color=fff&size=128",
}


@dataclass
class Settings:
    """Runtime settings."""
    database_url: str
    database_name: str
    google_client_id: str
    admin_email: str
    admin_password: str
    default_daily_rate: float
    notification_limit: int
    log_level: str
    port: int


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
        database_name=os.getenv("DATABASE_NAME", "em_luxury_cars"),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
        admin_email=os.getenv("ADMIN_EMAIL", "admin"),
        admin_password=os.getenv("ADMIN_PASSWORD", "admin"),
        default_daily_rate=float(os.getenv("DEFAULT_DAILY_RATE", "1200")),
        notification_limit=int(os.getenv("NOTIFICATION_LIMIT", "50")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        port=int(os.getenv("PORT", "8000")),
    )
