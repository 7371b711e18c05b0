"""Untappd feed access."""

from slacktapped.untappd.client import UntappdClient, UntappdClientError

__all__ = [
    "UntappdClient",
    "UntappdClientError",
]
