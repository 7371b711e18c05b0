"""Check-in processing: format, deduplicate, post and report."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from slacktapped.checkins.formatter import dig
from slacktapped.checkins.models import ProcessResult, ProcessStatus

if TYPE_CHECKING:
    from slacktapped.checkins.formatter import CheckinFormatter
    from slacktapped.checkins.models import Attachment
    from slacktapped.checkins.reporter import CheckinReporter

logger = logging.getLogger(__name__)


class ChatChannel(Protocol):
    """Protocol for chat delivery channels."""

    name: str

    async def send(self, attachments: list[dict[str, Any]]) -> bool:
        """Post attachments as one message. Returns True on success."""
        ...


def add_attachment(checkin: Mapping[str, Any], attachment: Attachment) -> dict[str, Any]:
    """Return a copy of the check-in with the attachment appended to its attachments."""
    existing = checkin.get("attachments")
    attachments = list(existing) if isinstance(existing, list) else []
    attachments.append(attachment.to_dict())
    return {**checkin, "attachments": attachments}


def _sort_key(checkin: Any) -> tuple[int, int | str]:
    """Order numeric ids ascending, anything else after them."""
    checkin_id = dig(checkin, "checkin_id")
    if isinstance(checkin_id, int) and not isinstance(checkin_id, bool):
        return (0, checkin_id)
    return (1, str(checkin_id))


class CheckinProcessor:
    """Runs check-ins through formatting, dedup and delivery.

    A marker is only written after the channel accepted the message, so
    a failed post is attempted again on the next poll.
    """

    def __init__(
        self,
        formatter: CheckinFormatter,
        reporter: CheckinReporter,
        channel: ChatChannel,
        *,
        dry_run: bool = False,
    ) -> None:
        """Initialize the processor.

        Args:
            formatter: Check-in to attachment formatter.
            reporter: Marker reporter deciding on reposts.
            channel: Chat channel the attachments are posted to.
            dry_run: Format and decide without posting or writing markers.
        """
        self.formatter = formatter
        self.reporter = reporter
        self.channel = channel
        self.dry_run = dry_run

    async def process(self, checkin: Any) -> ProcessResult:
        """Process a single check-in.

        Args:
            checkin: Raw check-in mapping; other feed items are skipped.

        Returns:
            ProcessResult describing what happened.
        """
        if not isinstance(checkin, Mapping):
            logger.warning("Skipping feed item that is not a checkin: %r", type(checkin).__name__)
            return ProcessResult(
                checkin_id=None,
                status=ProcessStatus.SKIPPED,
                reason="not a checkin",
            )

        checkin_id = checkin.get("checkin_id")
        if checkin_id is None:
            logger.warning("Skipping checkin without checkin_id")
            return ProcessResult(
                checkin_id=None,
                status=ProcessStatus.SKIPPED,
                reason="missing checkin_id",
            )

        attachment = self.formatter.format(checkin)
        with_attachment = add_attachment(checkin, attachment)

        kind = await self.reporter.decide(checkin_id, attachment)
        if kind is None:
            return ProcessResult(
                checkin_id=checkin_id,
                status=ProcessStatus.SKIPPED,
                reason="already posted",
            )

        if self.dry_run:
            logger.info("[dry run] Would post checkin %s as %s", checkin_id, kind.value)
            return ProcessResult(
                checkin_id=checkin_id,
                status=ProcessStatus.DRY_RUN,
                reported_as=kind,
                checkin={**with_attachment, "reported_as": kind.value},
            )

        delivered = await self.channel.send([attachment.to_dict()])
        if not delivered:
            logger.error("Failed to post checkin %s to %s", checkin_id, self.channel.name)
            return ProcessResult(
                checkin_id=checkin_id,
                status=ProcessStatus.FAILED,
                reason=f"{self.channel.name} delivery failed",
            )

        annotated = await self.reporter.report(with_attachment, attachment)
        return ProcessResult(
            checkin_id=checkin_id,
            status=ProcessStatus.POSTED,
            reported_as=kind,
            checkin=annotated,
        )

    async def process_batch(self, checkins: Iterable[Any]) -> list[ProcessResult]:
        """Process check-ins one at a time, oldest first.

        Args:
            checkins: Check-ins in any order.

        Returns:
            List of ProcessResult in processing order.
        """
        results = []
        for checkin in sorted(checkins, key=_sort_key):
            result = await self.process(checkin)
            results.append(result)

        posted = sum(1 for r in results if r.status is ProcessStatus.POSTED)
        logger.info(f"Processed {len(results)} checkins, {posted} posted")
        return results
