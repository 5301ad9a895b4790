"""
Minimal API-Football (api-sports.io v3) client for official match results.
"""
import logging
import time
from typing import Optional
from urllib.parse import urlparse

import requests

from quiniela.config import API_FOOTBALL_KEY, API_FOOTBALL_TIMEZONE, API_FOOTBALL_URL
from quiniela.errors import FootballApiError

logger = logging.getLogger(__name__)


class FootballApiClient:
    def __init__(
        self,
        base_url: str = API_FOOTBALL_URL,
        api_key: Optional[str] = API_FOOTBALL_KEY,
        timezone: str = API_FOOTBALL_TIMEZONE,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise FootballApiError("API_FOOTBALL_KEY is not configured")
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.session = session or requests.Session()
        self.session.headers.update({
            "x-rapidapi-key": api_key,
            "x-rapidapi-host": urlparse(self.base_url).netloc,
        })

    def get(self, endpoint: str, params: dict) -> dict:
        """GET an endpoint, backing off on 429 responses."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        delay_seconds = 5
        max_attempts = 5

        for attempt in range(1, max_attempts + 1):
            try:
                response = self.session.get(url, params=params, timeout=30)
            except requests.RequestException as e:
                raise FootballApiError(f"Request to {endpoint} failed: {e}") from e

            if response.status_code == 429:
                logger.warning(
                    "Rate limited (429) on %s. Sleeping %ss (attempt %d/%d)",
                    endpoint, delay_seconds, attempt, max_attempts,
                )
                time.sleep(delay_seconds)
                delay_seconds = min(delay_seconds * 2, 60)
                continue

            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise FootballApiError(f"API-Football error on {endpoint}: {e}") from e
            return response.json()

        raise FootballApiError(f"Rate limit retries exhausted for {endpoint}")

    def get_fixture(self, match_id: int) -> Optional[dict]:
        """Return the API-Football fixture record for a match, or None if unknown."""
        payload = self.get("fixtures", {"id": match_id, "timezone": self.timezone})
        response = payload.get("response") or []
        return response[0] if response else None
