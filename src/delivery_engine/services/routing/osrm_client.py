"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from ...config import settings

USER_AGENT = "warehouse-delivery-engine/0.1"

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        # One short-lived client per call keeps concurrent quotes independent.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            transport=self._transport,
        )

    def _get_json(self, url: str, params: dict) -> dict:
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    if data.get("code") != "Ok":
                        error_msg = data.get("message") or data.get("code") or "Unknown OSRM error"
                        raise ValueError(f"OSRM request failed: {error_msg}")
                    return data
                except httpx.HTTPStatusError as e:
                    # Client errors will not succeed on retry
                    if e.response.status_code < 500:
                        raise
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM request timed out after {self.max_retries} retries: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM request timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def route(self, coordinates: Sequence[tuple[float, float]]) -> dict:
        """Get the best road route through the given (lat, lon) waypoints.

        Returns the raw OSRM payload; ``routes[0]`` carries ``distance`` in
        meters and ``duration`` in seconds.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "overview": "false",
            "alternatives": "false",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        data = self._get_json(url, params)
        if not data.get("routes"):
            raise ValueError("OSRM route response contains no routes.")
        return data

    def table(self, origin: tuple[float, float], destinations: Sequence[tuple[float, float]]) -> dict:
        """Get distances/durations from one origin to many destinations.

        The returned ``distances`` and ``durations`` rows are indexed by
        destination position; unreachable pairs are ``None``.
        """
        if not destinations:
            raise ValueError("At least one destination is required for OSRM table.")

        coordinates = [origin, *destinations]
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "annotations": "duration,distance",
            "sources": "0",
            "destinations": ";".join(str(i) for i in range(1, len(coordinates))),
        }
        url = f"{self.base_url}/table/v1/{self.profile}/{coordinate_str}"
        data = self._get_json(url, params)
        if "durations" not in data or "distances" not in data:
            raise ValueError("OSRM response missing durations/distances.")
        return data


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        client = OSRMClient(base_url=base, timeout=5.0, max_retries=0)
        # Two points in central Delhi
        client.route([(28.6139, 77.2090), (28.6200, 77.2100)])
        return True
    except (httpx.HTTPError, ConnectionError, ValueError) as e:
        logger.info(f"OSRM health check failed: {e}")
        return False
