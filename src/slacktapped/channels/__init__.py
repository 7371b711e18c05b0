"""Chat channel implementations."""

from slacktapped.channels.slack import SlackChannel

__all__ = [
    "SlackChannel",
]
