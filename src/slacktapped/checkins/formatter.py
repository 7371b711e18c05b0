"""Check-in formatter for Slack attachments.

This module turns raw Untappd check-in mappings into Slack attachments.
Every field of a check-in is optional: missing values render as empty
strings inside links and text, and as None in nullable attachment fields.
Formatting never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from slacktapped.checkins.models import Attachment

# Untappd URLs
UNTAPPD_URL = "https://untappd.com"
BEER_PATH = "/b/{slug}/{beer_id}"
BREWERY_PATH = "/brewery/{brewery_id}"
CHECKIN_PATH = "/user/{username}/checkin/{checkin_id}"
USER_PATH = "/user/{username}"
VENUE_PATH = "/v/{slug}/{venue_id}"

TOAST_LABEL = "Toast »"


def dig(data: Any, *keys: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def to_text(value: Any) -> str:
    """Render a value for interpolation, with None as an empty string."""
    if value is None:
        return ""
    return str(value)


def is_number(value: Any) -> bool:
    """Check for a numeric rating (bools are not ratings)."""
    return isinstance(value, int | float | Decimal) and not isinstance(value, bool)


def is_comment(value: Any) -> bool:
    """Check for a non-empty comment string."""
    return isinstance(value, str) and value != ""


def link(label: Any, url: str) -> str:
    """Build a markdown link."""
    return f"[{to_text(label)}]({url})"


def parse_name(user: Any) -> str:
    """Get the display name of a check-in's user.

    Uses first and last name when Untappd has them, otherwise the
    username, otherwise an empty string.
    """
    parts = [dig(user, "first_name"), dig(user, "last_name")]
    name = " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
    if name:
        return name
    return to_text(dig(user, "user_name"))


def build_rating_and_comment(comment: Any, rating: Any) -> str:
    """Build the sentence describing the user's rating and comment."""
    if is_comment(comment) and is_number(rating):
        return f'\nThey rated it a {rating} and said "{comment}"'
    if is_comment(comment):
        return f'\nThey said "{comment}"'
    if is_number(rating):
        return f"\nThey rated it a {rating}."
    return ""


def resolve_image_url(checkin: Mapping[str, Any]) -> str | None:
    """Pick the image for a check-in.

    The first photo attached to the check-in wins; without photos the
    beer label is used, which may itself be missing.
    """
    media_items = dig(checkin, "media", "items")
    if isinstance(media_items, list) and len(media_items) >= 1:
        return dig(media_items[0], "photo", "photo_img_lg")
    return dig(checkin, "beer", "beer_label")


class CheckinFormatter:
    """Formats Untappd check-ins into Slack attachments.

    The formatter is a pure function of its input: formatting the same
    check-in twice yields equal attachments.
    """

    def __init__(self, base_url: str = UNTAPPD_URL) -> None:
        """Initialize the formatter.

        Args:
            base_url: Root URL used for every Untappd permalink.
        """
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str, **parts: Any) -> str:
        return self.base_url + path.format(**{k: to_text(v) for k, v in parts.items()})

    def build_venue(self, venue: Any) -> str:
        """Build the ' at <venue>' suffix, empty when there is no venue."""
        if not isinstance(venue, Mapping):
            return ""
        url = self._url(
            VENUE_PATH,
            slug=venue.get("venue_slug"),
            venue_id=venue.get("venue_id"),
        )
        return f" at {link(venue.get('venue_name'), url)}"

    def format(self, checkin: Mapping[str, Any]) -> Attachment:
        """Format a check-in into a Slack attachment.

        Args:
            checkin: Raw check-in mapping from the Untappd feed.

        Returns:
            Attachment ready to be posted.
        """
        username = dig(checkin, "user", "user_name")
        beer_name = dig(checkin, "beer", "beer_name")
        beer_style = dig(checkin, "beer", "beer_style")
        beer_abv = dig(checkin, "beer", "beer_abv")
        checkin_id = dig(checkin, "checkin_id")

        beer_url = self._url(
            BEER_PATH,
            slug=dig(checkin, "beer", "beer_slug"),
            beer_id=dig(checkin, "beer", "bid"),
        )
        user_url = self._url(USER_PATH, username=username)
        toast_url = self._url(CHECKIN_PATH, username=username, checkin_id=checkin_id)
        brewery_url = self._url(
            BREWERY_PATH,
            brewery_id=dig(checkin, "brewery", "brewery_id"),
        )

        user = link(parse_name(dig(checkin, "user")), user_url)
        beer = link(beer_name, beer_url)
        toast = link(TOAST_LABEL, toast_url)
        venue = self.build_venue(dig(checkin, "venue"))
        rating_and_comment = build_rating_and_comment(
            dig(checkin, "checkin_comment"),
            dig(checkin, "rating_score"),
        )

        text = (
            f"{user} is drinking {beer} "
            f"({to_text(beer_style)}, {to_text(beer_abv)}% ABV){venue}."
            f"{rating_and_comment} {toast}"
        )

        return Attachment(
            author_icon=dig(checkin, "user", "user_avatar"),
            author_link=user_url,
            author_name=username,
            footer=link(dig(checkin, "brewery", "brewery_name"), brewery_url),
            footer_icon=dig(checkin, "brewery", "brewery_label"),
            image_url=resolve_image_url(checkin),
            text=text,
            title=beer_name,
            title_link=beer_url,
        )
