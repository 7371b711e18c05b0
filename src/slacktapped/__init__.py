"""Slacktapped - Untappd check-ins delivered to Slack."""

__version__ = "0.1.0"
