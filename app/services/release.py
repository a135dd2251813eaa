"""Release-date evaluation for episodes."""

from __future__ import annotations

from datetime import datetime

from ..clock import Clock, system_clock
from ..models import Episode, ReleaseDate

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
UNKNOWN_DATE = "Unknown date"


def release_moment(release_date: ReleaseDate) -> datetime:
    """Return local midnight of the release day.

    Raises ``ValueError`` when the year/month/day triple is not a real date.
    """

    return datetime(release_date.year, release_date.month, release_date.day)


def is_released(episode: Episode, clock: Clock = system_clock) -> bool:
    """Return ``True`` when the episode's release instant is at or before now.

    Episodes fetched without a release date carry the fetch day as their
    release date, so they count as released from that day on. Dates that do
    not exist on the calendar are never released.
    """

    try:
        moment = release_moment(episode.release_date)
    except (ValueError, OverflowError):
        return False
    return moment <= clock()


def format_release_date(release_date: ReleaseDate) -> str:
    """Render a release date as ``Jan 5, 2024``."""

    try:
        moment = release_moment(release_date)
    except (ValueError, OverflowError):
        return UNKNOWN_DATE
    return f"{MONTH_ABBREVIATIONS[moment.month - 1]} {moment.day}, {moment.year}"
