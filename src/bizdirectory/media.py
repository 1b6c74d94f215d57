"""Logo uploads to Cloudinary and CDN URL derivation.

Uploads are optional: when the Cloudinary credentials are not configured the
uploader reports itself disabled and submissions are stored without a logo.
"""
from __future__ import annotations

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

import requests

from .config import Config

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"
LOGO_FOLDER = "bizdirectory/business-logos"
LOGO_TRANSFORMATION = "c_fit,w_200,h_200,q_auto,f_auto"

_DELIVERY_PREFIX_RE = re.compile(r"^https?://res\.cloudinary\.com/[^/]+/image/upload/(?:v\d+/)?")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


@dataclass(frozen=True)
class UploadedLogo:
    url: str
    public_id: str


def build_cdn_url(public_id: Optional[str], cloud_name: Optional[str]) -> Optional[str]:
    """Resized delivery URL for a stored public id.

    Accepts bare ids (``folder/name``), ids with an extension, and full
    Cloudinary delivery URLs. Other absolute URLs are returned untouched.
    """
    if not public_id or not cloud_name:
        return None
    if public_id.startswith("http") and not _DELIVERY_PREFIX_RE.match(public_id):
        return public_id
    clean_id = _DELIVERY_PREFIX_RE.sub("", public_id)
    clean_id = _EXTENSION_RE.sub("", clean_id)
    return f"https://res.cloudinary.com/{cloud_name}/image/upload/{LOGO_TRANSFORMATION}/{clean_id}"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
    """Signed image uploads; every failure degrades to ``None``."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": config.http_user_agent})

    @property
    def enabled(self) -> bool:
        return self.config.uploads_enabled

    def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> Optional[UploadedLogo]:
        if not self.enabled:
            logger.info("Logo upload skipped: Cloudinary is not configured")
            return None
        if not content:
            return None

        params = {
            "folder": LOGO_FOLDER,
            "timestamp": str(int(time.time())),
            "transformation": LOGO_TRANSFORMATION,
        }
        data = dict(params)
        data["api_key"] = self.config.cloudinary_api_key
        data["signature"] = sign_params(params, self.config.cloudinary_api_secret)

        url = UPLOAD_URL.format(cloud_name=self.config.cloudinary_cloud_name)
        try:
            resp = self.session.post(
                url,
                data=data,
                files={"file": (filename or "logo", content, content_type or "application/octet-stream")},
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Cloudinary upload failed: %s", exc)
            return None

        if resp.status_code != 200:
            logger.warning("Cloudinary error %d: %s", resp.status_code, resp.text[:200])
            return None

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Cloudinary returned a non-JSON body")
            return None

        secure_url = body.get("secure_url")
        public_id = body.get("public_id")
        if not secure_url or not public_id:
            logger.warning("Cloudinary response missing secure_url/public_id")
            return None
        return UploadedLogo(url=secure_url, public_id=public_id)
