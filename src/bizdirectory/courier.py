"""Courier (shipping) lookups for city and area pick-lists.

Two upstreams are consulted:

* the city directory (Leopards style): ``POST getAllCities`` with an API key
  and password in the body, answering ``{"status": "1", "city_list": [...]}``;
* the courier API: bearer-token login, then ``GET /areas?cityId=``.

Neither call is retried. Any failure, including missing credentials, yields
static fallback data so the lookup endpoints stay available.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import Config
from .models import City
from .normalizers import normalize_areas, normalize_cities
from .seed import DEFAULT_CITIES

logger = logging.getLogger(__name__)

TOKEN_REFRESH_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

PROVINCES = [
    {"id": "Punjab", "name": "Punjab"},
    {"id": "Sindh", "name": "Sindh"},
    {"id": "KPK", "name": "Khyber Pakhtunkhwa"},
    {"id": "Balochistan", "name": "Balochistan"},
    {"id": "GB", "name": "Gilgit Baltistan"},
    {"id": "AJK", "name": "Azad Jammu & Kashmir"},
]

FALLBACK_CITIES = [{"id": city["slug"], "name": city["name"]} for city in DEFAULT_CITIES]

FALLBACK_AREAS: dict[str, list[str]] = {
    "karachi": ["Clifton", "DHA", "Gulshan-e-Iqbal", "North Nazimabad", "Saddar"],
    "lahore": ["Gulberg", "DHA", "Johar Town", "Model Town", "Bahria Town"],
    "islamabad": ["F-6", "F-7", "G-9", "I-8", "Blue Area"],
    "rawalpindi": ["Saddar", "Bahria Town", "Satellite Town", "Chaklala", "Westridge"],
    "faisalabad": ["D Ground", "Madina Town", "Peoples Colony", "Jinnah Colony", "Civil Lines"],
    "multan": ["Cantt", "Gulgasht Colony", "Bosan Road", "Shah Rukn-e-Alam", "New Multan"],
}


class CourierError(Exception):
    """An upstream lookup failed or returned an unusable payload."""


class ExpiringTokenCache:
    """One bearer token plus its expiry, shared by concurrent requests.

    ``get`` returns the cached token while more than ``refresh_margin``
    seconds of validity remain, otherwise it calls ``fetch`` (under the lock,
    so only one caller logs in) and stores the new token.
    """

    def __init__(
        self,
        refresh_margin: float = TOKEN_REFRESH_MARGIN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def get(self, fetch: Callable[[], tuple[str, float]]) -> str:
        with self._lock:
            now = self._clock()
            if self._token and self._expires_at - now > self.refresh_margin:
                return self._token
            token, lifetime = fetch()
            self._token = token
            self._expires_at = now + lifetime
            return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0


def _json_or_error(resp: requests.Response, what: str) -> Any:
    if resp.status_code >= 400:
        raise CourierError(f"{what} returned {resp.status_code}: {resp.text[:200]}")
    try:
        return resp.json()
    except ValueError as exc:
        raise CourierError(f"{what} returned a non-JSON body") from exc


class CourierClient:
    def __init__(self, config: Config, token_cache: ExpiringTokenCache) -> None:
        self.config = config
        self.token_cache = token_cache
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": config.http_user_agent, "Content-Type": "application/json"})

    @property
    def configured(self) -> bool:
        return self.config.courier_configured

    def _login(self) -> tuple[str, float]:
        try:
            resp = self.session.post(
                f"{self.config.courier_api_base_url}/login",
                json={"username": self.config.courier_api_username, "password": self.config.courier_api_password},
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as exc:
            raise CourierError(f"Courier login failed: {exc}") from exc

        data = _json_or_error(resp, "Courier login")
        if not isinstance(data, dict):
            raise CourierError("Courier login response is not an object")
        nested = data.get("data") if isinstance(data.get("data"), dict) else {}
        token = data.get("token") or data.get("access_token") or nested.get("token")
        if not token:
            raise CourierError("Courier login response missing token field")
        try:
            lifetime = float(data.get("expires_in") or data.get("expiresIn") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        return str(token), lifetime

    def fetch_areas(self, city_id: str) -> list[dict[str, str]]:
        if not self.configured:
            raise CourierError("Courier API is not configured")
        token = self.token_cache.get(self._login)
        try:
            resp = self.session.get(
                f"{self.config.courier_api_base_url}/areas",
                params={"cityId": city_id},
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as exc:
            raise CourierError(f"Courier areas request failed: {exc}") from exc
        if resp.status_code == 401:
            self.token_cache.invalidate()
        return normalize_areas(_json_or_error(resp, "Courier areas"))


class CityDirectoryClient:
    def __init__(self, config: Config) -> None:
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": config.http_user_agent, "Content-Type": "application/json"})

    @property
    def configured(self) -> bool:
        return self.config.city_directory_configured

    def fetch_cities(self) -> list[dict[str, str]]:
        if not self.configured:
            raise CourierError("City directory API is not configured")
        try:
            resp = self.session.post(
                f"{self.config.leopards_api_base_url}/getAllCities/format/json/",
                json={"api_key": self.config.leopards_api_key, "api_password": self.config.leopards_api_password},
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as exc:
            raise CourierError(f"City directory request failed: {exc}") from exc

        data = _json_or_error(resp, "City directory")
        if not isinstance(data, dict) or str(data.get("status")) != "1" or not isinstance(data.get("city_list"), list):
            raise CourierError("City directory returned an invalid response")
        return normalize_cities(data["city_list"])


def fallback_cities(session: Optional[Session] = None) -> list[dict[str, str]]:
    """Active cities from storage, or the built-in list when there are none."""
    if session is not None:
        rows = session.execute(
            select(City).where(City.is_active.isnot(False)).order_by(City.name)
        ).scalars().all()
        if rows:
            return [{"id": row.slug, "name": row.name} for row in rows]
    return list(FALLBACK_CITIES)


def fallback_areas(city_id: str) -> list[dict[str, str]]:
    key = (city_id or "").strip().lower()
    for city in DEFAULT_CITIES:
        if key in (city["slug"], city["name"].lower()):
            key = city["slug"]
            break
    return [{"id": name, "name": name} for name in FALLBACK_AREAS.get(key, [])]


def load_cities(client: CityDirectoryClient, session: Optional[Session] = None) -> list[dict[str, str]]:
    if not client.configured:
        return fallback_cities(session)
    try:
        cities = client.fetch_cities()
    except CourierError as exc:
        logger.warning("Using fallback cities: %s", exc)
        return fallback_cities(session)
    return cities or fallback_cities(session)


def load_areas(client: CourierClient, city_id: str) -> list[dict[str, str]]:
    if not client.configured:
        return fallback_areas(city_id)
    try:
        return client.fetch_areas(city_id)
    except CourierError as exc:
        logger.warning("Using fallback areas for city %r: %s", city_id, exc)
        return fallback_areas(city_id)
