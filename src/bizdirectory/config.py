from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Config:
    database_url: str
    db_connect_attempts: int
    site_url: str
    http_timeout: int
    http_user_agent: str
    log_level: str

    courier_api_base_url: Optional[str]
    courier_api_username: Optional[str]
    courier_api_password: Optional[str]
    leopards_api_base_url: Optional[str]
    leopards_api_key: Optional[str]
    leopards_api_password: Optional[str]

    cloudinary_cloud_name: Optional[str]
    cloudinary_api_key: Optional[str]
    cloudinary_api_secret: Optional[str]

    @property
    def courier_configured(self) -> bool:
        return bool(self.courier_api_base_url and self.courier_api_username and self.courier_api_password)

    @property
    def city_directory_configured(self) -> bool:
        return bool(self.leopards_api_base_url and self.leopards_api_key and self.leopards_api_password)

    @property
    def uploads_enabled(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)


def _optional(key: str) -> Optional[str]:
    return (os.getenv(key) or "").strip() or None


def load_config() -> Config:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set")

    return Config(
        database_url=database_url,
        db_connect_attempts=max(int(os.getenv("DB_CONNECT_ATTEMPTS", "5")), 1),
        site_url=os.getenv("SITE_URL", "https://bizbranches.pk").rstrip("/"),
        http_timeout=int(os.getenv("HTTP_TIMEOUT", "10")),
        http_user_agent=os.getenv("HTTP_USER_AGENT", "business-directory/0.1"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        courier_api_base_url=(_optional("COURIER_API_BASE_URL") or "").rstrip("/") or None,
        courier_api_username=_optional("COURIER_API_USERNAME"),
        courier_api_password=_optional("COURIER_API_PASSWORD"),
        leopards_api_base_url=(_optional("LEOPARDS_API_BASE_URL") or "").rstrip("/") or None,
        leopards_api_key=_optional("LEOPARDS_API_KEY"),
        leopards_api_password=_optional("LEOPARDS_API_PASSWORD"),
        cloudinary_cloud_name=_optional("CLOUDINARY_CLOUD_NAME"),
        cloudinary_api_key=_optional("CLOUDINARY_API_KEY"),
        cloudinary_api_secret=_optional("CLOUDINARY_API_SECRET"),
    )
