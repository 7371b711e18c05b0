"""Check-in reporting and deduplication.

Reporting that a check-in was posted sets one of two markers in the
store:

1. <instance_name>:<checkin_id>:with-image
2. <instance_name>:<checkin_id>:without-image

A check-in posted without an image is posted once more when the user
later adds a photo. A check-in that already has a with-image marker is
never posted again.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from slacktapped.checkins.models import Attachment, ReportKind

if TYPE_CHECKING:
    from slacktapped.storage.markers import MarkerStore

logger = logging.getLogger(__name__)


def get_report_kind(attachment: Attachment) -> ReportKind:
    """Get the marker kind for an attachment."""
    if attachment.has_image:
        return ReportKind.WITH_IMAGE
    return ReportKind.WITHOUT_IMAGE


class CheckinReporter:
    """Records posted check-ins and decides whether to (re)post them."""

    def __init__(self, store: MarkerStore, instance_name: str) -> None:
        """Initialize the reporter.

        Args:
            store: Store holding the report markers.
            instance_name: Namespace prefix for marker keys.
        """
        self.store = store
        self.instance_name = instance_name

    def marker_key(self, checkin_id: Any, kind: ReportKind) -> str:
        """Build the store key for a check-in marker."""
        checkin_part = "" if checkin_id is None else str(checkin_id)
        return f"{self.instance_name}:{checkin_part}:{kind.value}"

    async def decide(self, checkin_id: Any, attachment: Attachment) -> ReportKind | None:
        """Decide how a check-in should be posted, if at all.

        Args:
            checkin_id: Identifier of the check-in.
            attachment: The formatted attachment about to be posted.

        Returns:
            The kind to post as, or None if the check-in was already
            delivered in a form at least as complete.
        """
        kind = get_report_kind(attachment)

        if await self.store.exists(self.marker_key(checkin_id, ReportKind.WITH_IMAGE)):
            logger.debug("Checkin %s already posted with image", checkin_id)
            return None

        if kind is ReportKind.WITHOUT_IMAGE and await self.store.exists(
            self.marker_key(checkin_id, ReportKind.WITHOUT_IMAGE)
        ):
            logger.debug("Checkin %s already posted without image", checkin_id)
            return None

        return kind

    async def report(
        self,
        checkin: Mapping[str, Any],
        attachment: Attachment,
    ) -> dict[str, Any]:
        """Record that a check-in was posted.

        Args:
            checkin: The check-in that was posted; its checkin_id keys the marker.
            attachment: The attachment that was posted for it.

        Returns:
            A copy of the check-in with reported_as set to the marker kind.
        """
        checkin_id = checkin.get("checkin_id")
        kind = get_report_kind(attachment)

        await self.store.set(self.marker_key(checkin_id, kind))
        logger.info("Reported checkin %s as %s", checkin_id, kind.value)

        return {**checkin, "reported_as": kind.value}
