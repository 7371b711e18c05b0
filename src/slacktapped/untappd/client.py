"""Untappd API client for polling the friends check-in feed."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Constants
DEFAULT_API_URL = "https://api.untappd.com/v4"
RECENT_CHECKINS_PATH = "/checkin/recent"
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 50
DEFAULT_TIMEOUT = 10.0

# Untappd allows 100 calls per hour per token
LOW_RATE_LIMIT_THRESHOLD = 10


class UntappdClientError(Exception):
    """Raised when the Untappd feed cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UntappdClient:
    """Client for the Untappd activity feed.

    Reads the recent check-ins of the token owner's friends. The client
    does not retry; a failed poll is simply repeated on the next interval.

    Example:
        >>> client = UntappdClient(access_token="...")
        >>> checkins = await client.get_recent_checkins(min_id=123456)
    """

    def __init__(
        self,
        access_token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the Untappd client.

        Args:
            access_token: OAuth access token of the polling account.
            api_url: Untappd API base URL.
            timeout: HTTP request timeout in seconds.
        """
        self._access_token = access_token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    async def get_recent_checkins(
        self,
        min_id: int | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Fetch recent check-ins from the friends feed.

        Args:
            min_id: Only return check-ins newer than this id.
            limit: Number of check-ins to request (capped at 50).

        Returns:
            List of raw check-in mappings, newest first as Untappd sends them.

        Raises:
            UntappdClientError: On transport errors, non-200 responses or
                an unexpected response envelope.
        """
        params: dict[str, Any] = {
            "access_token": self._access_token,
            "limit": min(limit, MAX_PAGE_SIZE),
        }
        if min_id is not None:
            params["min_id"] = min_id

        url = f"{self._api_url}{RECENT_CHECKINS_PATH}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise UntappdClientError(f"Failed to fetch recent checkins: {e}") from e

        self._log_rate_limit(response)

        if response.status_code != 200:
            raise UntappdClientError(
                f"Untappd returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            items = response.json()["response"]["checkins"]["items"]
        except (ValueError, KeyError, TypeError) as e:
            raise UntappdClientError(f"Unexpected Untappd response: {e}") from e

        if not isinstance(items, list):
            raise UntappdClientError("Unexpected Untappd response: items is not a list")

        logger.debug("Fetched %d checkins (min_id=%s)", len(items), min_id)
        return items

    def _log_rate_limit(self, response: httpx.Response) -> None:
        """Warn when the hourly API allowance is almost used up."""
        remaining = response.headers.get("X-Ratelimit-Remaining")
        if remaining is None:
            return
        try:
            remaining_count = int(remaining)
        except ValueError:
            return
        if remaining_count <= LOW_RATE_LIMIT_THRESHOLD:
            logger.warning("Untappd rate limit low: %d calls remaining", remaining_count)
