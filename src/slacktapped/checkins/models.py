"""Data models for the checkins module."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

ATTACHMENT_COLOR = "#FFCF0B"
ATTACHMENT_FALLBACK = "Image of this checkin."


class ReportKind(str, Enum):
    """How a check-in was posted, and the suffix of its report marker."""

    WITH_IMAGE = "with-image"
    WITHOUT_IMAGE = "without-image"


class ProcessStatus(str, Enum):
    """Outcome of processing a single check-in."""

    POSTED = "posted"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class Attachment:
    """A Slack message attachment built from one check-in.

    Nullable fields mirror values that may be missing from the check-in;
    link fields are always built, even from empty parts.
    """

    author_icon: str | None
    author_link: str
    author_name: str | None
    footer: str
    footer_icon: str | None
    image_url: str | None
    text: str
    title: str | None
    title_link: str
    color: str = ATTACHMENT_COLOR
    fallback: str = ATTACHMENT_FALLBACK

    @property
    def has_image(self) -> bool:
        """Return True if the attachment carries a non-empty image URL."""
        return isinstance(self.image_url, str) and self.image_url != ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the mapping Slack expects, keys sorted."""
        return dict(sorted(asdict(self).items()))


@dataclass(frozen=True)
class ProcessResult:
    """Result of running a check-in through format, post and report.

    Attributes:
        checkin_id: Identifier of the processed check-in, if it had one.
        status: What happened to the check-in.
        reported_as: Marker kind written (or that would be written in dry-run).
        checkin: The annotated check-in for posted or dry-run results.
        reason: Short explanation for skipped or failed results.
    """

    checkin_id: Any
    status: ProcessStatus
    reported_as: ReportKind | None = None
    checkin: dict[str, Any] | None = None
    reason: str | None = None
