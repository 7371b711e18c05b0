"""Check-in layer - Formatting, dedup and delivery of Untappd check-ins."""

from slacktapped.checkins.formatter import CheckinFormatter
from slacktapped.checkins.models import (
    Attachment,
    ProcessResult,
    ProcessStatus,
    ReportKind,
)
from slacktapped.checkins.processor import ChatChannel, CheckinProcessor
from slacktapped.checkins.reporter import CheckinReporter

__all__ = [
    "Attachment",
    "ChatChannel",
    "CheckinFormatter",
    "CheckinProcessor",
    "CheckinReporter",
    "ProcessResult",
    "ProcessStatus",
    "ReportKind",
]
