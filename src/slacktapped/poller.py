"""Background poller for the Untappd check-in feed.

This module runs the poll loop: fetch new check-ins, hand them to the
processor, and wait for the next interval or a stop request.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from slacktapped.checkins.models import ProcessResult, ProcessStatus

if TYPE_CHECKING:
    from slacktapped.checkins.processor import CheckinProcessor
    from slacktapped.untappd.client import UntappdClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60


class PollerState(str, Enum):
    """State of the check-in poller."""

    STOPPED = "stopped"
    POLLING = "polling"
    IDLE = "idle"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class PollStats:
    """Statistics for the poll loop."""

    total_polls: int = 0
    failed_polls: int = 0
    checkins_seen: int = 0
    checkins_posted: int = 0
    checkins_failed: int = 0
    last_poll_time: datetime | None = None
    last_error: str | None = None


StateCallback = Callable[[PollerState], None]


class CheckinPoller:
    """Polls the Untappd feed and processes new check-ins.

    Every poll reads the most recent page of the feed and relies on the
    report markers to skip check-ins already delivered. Check-ins posted
    without an image stay in view while they are on that page, so a
    photo added later is still picked up and reposted once.

    Example:
        ```python
        poller = CheckinPoller(client, processor, poll_interval_seconds=60)
        await poller.start()
        ...
        await poller.stop()
        ```
    """

    def __init__(
        self,
        client: UntappdClient,
        processor: CheckinProcessor,
        *,
        poll_interval_seconds: int = DEFAULT_POLL_INTERVAL_SECONDS,
        page_size: int = 25,
        on_state_change: StateCallback | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            client: Untappd feed client.
            processor: Processor that formats, posts and reports check-ins.
            poll_interval_seconds: Seconds to wait between polls.
            page_size: Number of recent check-ins read per poll.
            on_state_change: Callback for state changes.
        """
        self._client = client
        self._processor = processor
        self._poll_interval = poll_interval_seconds
        self._page_size = page_size
        self._on_state_change = on_state_change

        self._state = PollerState.STOPPED
        self._stats = PollStats()
        self._poll_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> PollerState:
        """Current poller state."""
        return self._state

    @property
    def stats(self) -> PollStats:
        """Current poll statistics."""
        return self._stats

    def _set_state(self, new_state: PollerState) -> None:
        """Update state and notify callback."""
        old_state = self._state
        self._state = new_state
        if self._on_state_change and old_state != new_state:
            try:
                self._on_state_change(new_state)
            except Exception as e:
                logger.warning(f"State change callback failed: {e}")

    async def poll_once(self) -> list[ProcessResult]:
        """Fetch and process the most recent page of check-ins.

        Returns:
            Results for every check-in returned by the feed.

        Raises:
            UntappdClientError: If the feed could not be fetched.
        """
        self._set_state(PollerState.POLLING)
        self._stats.total_polls += 1

        try:
            checkins = await self._client.get_recent_checkins(limit=self._page_size)
            results = await self._processor.process_batch(checkins)
        except Exception as e:
            self._stats.failed_polls += 1
            self._stats.last_error = str(e)
            self._set_state(PollerState.ERROR)
            raise

        self._stats.checkins_seen += len(results)
        self._stats.checkins_posted += sum(1 for r in results if r.status is ProcessStatus.POSTED)
        self._stats.checkins_failed += sum(1 for r in results if r.status is ProcessStatus.FAILED)
        self._stats.last_poll_time = datetime.now(UTC)
        self._stats.last_error = None

        self._set_state(PollerState.IDLE)
        return results

    async def start(self) -> None:
        """Start the background poll loop."""
        if self._poll_task is not None:
            logger.warning(f"Cannot start poller: already in state {self._state}")
            return

        self._stop_event.clear()
        self._poll_task = asyncio.create_task(self.run())
        logger.info("Checkin poller started")

    def request_stop(self) -> None:
        """Ask the poll loop to exit after the current poll."""
        self._stop_event.set()

    async def stop(self) -> None:
        """Stop the background poll loop."""
        if self._poll_task is None:
            return

        self._set_state(PollerState.STOPPING)
        self._stop_event.set()

        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None

        self._set_state(PollerState.STOPPED)
        logger.info("Checkin poller stopped")

    async def run(self) -> None:
        """Poll until a stop is requested."""
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Poll failed: {e}")
                # Keep running - will retry on next interval

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._poll_interval,
                )
            except TimeoutError:
                continue

        self._set_state(PollerState.STOPPED)
