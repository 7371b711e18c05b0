"""Slack incoming webhook channel implementation."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class SlackChannel:
    """Slack incoming webhook channel for posting check-ins.

    Sends attachments to Slack via webhook URL with rate limiting
    and retry support.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        channel: str | None = None,
        username: str | None = None,
        rate_limit_per_minute: int = 60,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
    ) -> None:
        """Initialize Slack channel.

        Args:
            webhook_url: Slack incoming webhook URL.
            channel: Optional channel override sent with each message.
            username: Optional display name override sent with each message.
            rate_limit_per_minute: Maximum messages per minute (Slack allows about one per second).
            max_retries: Maximum attempts per message.
            retry_delay: Base delay between retries (exponential backoff).
            timeout: HTTP request timeout in seconds.
        """
        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.rate_limit_per_minute = rate_limit_per_minute
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.name = "slack"

        # Rate limiting state
        self._request_times: list[float] = []
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self) -> None:
        """Wait if rate limit is exceeded."""
        async with self._lock:
            now = asyncio.get_running_loop().time()
            self._request_times = [t for t in self._request_times if now - t < 60]

            if len(self._request_times) >= self.rate_limit_per_minute:
                wait_time = 60 - (now - self._request_times[0])
                if wait_time > 0:
                    logger.debug(f"Slack rate limit hit, waiting {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)

            self._request_times.append(now)

    def build_payload(self, attachments: list[dict[str, Any]]) -> dict[str, Any]:
        """Build the webhook payload for a list of attachments."""
        payload: dict[str, Any] = {"attachments": attachments}
        if self.channel:
            payload["channel"] = self.channel
        if self.username:
            payload["username"] = self.username
        return payload

    def _parse_retry_after(self, response: httpx.Response) -> float:
        """Get the delay Slack asked for, or the base retry delay if unreadable."""
        value = response.headers.get("Retry-After")
        if value is None:
            return self.retry_delay
        try:
            delay = float(value)
        except ValueError:
            delay = math.nan
        if not math.isfinite(delay):
            logger.debug(f"Unreadable Retry-After header {value!r}")
            return self.retry_delay
        return max(delay, 0.0)

    async def send(self, attachments: list[dict[str, Any]]) -> bool:
        """Post attachments to the Slack webhook.

        Args:
            attachments: Attachment mappings to post as one message.

        Returns:
            True if delivery succeeded, False otherwise.
        """
        await self._wait_for_rate_limit()

        payload = self.build_payload(attachments)

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.webhook_url, json=payload)

                    if response.status_code == 200:
                        logger.info("Slack message delivered successfully")
                        return True

                    if response.status_code == 429:
                        retry_after = self._parse_retry_after(response)
                        logger.warning(f"Slack rate limited, retry after {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue

                    logger.error(f"Slack webhook failed: {response.status_code} {response.text}")

                    # Client errors (bad payload, revoked webhook) will not fix themselves
                    if 400 <= response.status_code < 500:
                        return False

            except httpx.TimeoutException:
                logger.warning(f"Slack webhook timeout (attempt {attempt + 1})")
            except httpx.HTTPError as e:
                logger.error(f"Slack webhook error: {e}")

            if attempt < self.max_retries - 1:
                delay = self.retry_delay * (2**attempt)
                await asyncio.sleep(delay)

        logger.error("Slack delivery failed after all retries")
        return False
