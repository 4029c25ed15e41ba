"""Text helpers for slugs and timestamps."""

import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

import pendulum

SLUG_MAX_LENGTH = 480


def slugify(value: str, separator: str = "-") -> str:
    """ASCII slug: transliterate, lowercase, collapse non-alphanumerics."""
    normalized = unicodedata.normalize("NFKD", value or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_text = ascii_text.replace("@", " at ").replace("&", " and ")
    slug = re.sub(r"[^a-z0-9]+", separator, ascii_text.lower())
    slug = slug.strip(separator)
    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_MAX_LENGTH].rstrip(separator)
    return slug


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an API timestamp into an aware datetime, or None if it cannot be read.

    Naive values are taken as UTC.
    """
    if not value or not str(value).strip():
        return None
    try:
        parsed = pendulum.parse(str(value).strip(), tz="UTC", strict=False)
    except (ValueError, TypeError, OverflowError):
        return None
    if not isinstance(parsed, datetime):
        # Times and durations are not publish timestamps
        return None
    utc = parsed.in_timezone("UTC")
    return datetime(
        utc.year, utc.month, utc.day, utc.hour, utc.minute, utc.second, utc.microsecond,
        tzinfo=timezone.utc,
    )
