"""Release-date evaluation tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from app.clock import fixed_clock
from app.models import Episode, ReleaseDate
from app.services.release import format_release_date, is_released

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _episode(release: dict | None) -> Episode:
    payload = {"id": "tt01", "title": "Pilot", "season": "1", "episodeNumber": 1}
    if release is not None:
        payload["releaseDate"] = release
    episode = Episode.from_payload(payload, season=1, today=NOW.date())
    assert episode is not None
    return episode


def test_past_and_same_day_releases_are_released() -> None:
    clock = fixed_clock(NOW)

    assert is_released(_episode({"year": 2020, "month": 3, "day": 1}), clock)
    assert is_released(_episode({"year": 2024, "month": 6, "day": 15}), clock)


def test_future_release_is_not_released() -> None:
    clock = fixed_clock(NOW)

    assert not is_released(_episode({"year": 2024, "month": 6, "day": 16}), clock)


def test_month_is_one_indexed() -> None:
    """June 15 must not be read as July 15."""

    episode = _episode({"year": 2024, "month": 6, "day": 15})

    assert not is_released(episode, fixed_clock(datetime(2024, 6, 14, 23, 59)))
    assert is_released(episode, fixed_clock(datetime(2024, 6, 15, 0, 0)))


def test_missing_release_date_is_released_from_fetch_day() -> None:
    episode = _episode(None)

    assert episode.release_date == ReleaseDate.from_date(NOW.date())
    assert is_released(episode, fixed_clock(NOW))
    assert not is_released(episode, fixed_clock(NOW - timedelta(days=1)))


@pytest.mark.parametrize("offset_days", [0, 1, 30, 3650])
def test_release_is_monotonic_in_time(offset_days: int) -> None:
    episode = _episode({"year": 2024, "month": 6, "day": 1})
    assert is_released(episode, fixed_clock(NOW))

    later = NOW + timedelta(days=offset_days)
    assert is_released(episode, fixed_clock(later))


def test_impossible_date_is_never_released() -> None:
    episode = _episode({"year": 2024, "month": 2, "day": 31})

    assert not is_released(episode, fixed_clock(NOW))
    assert format_release_date(episode.release_date) == "Unknown date"


def test_format_release_date() -> None:
    assert format_release_date(ReleaseDate(year=2024, month=1, day=5)) == "Jan 5, 2024"
    assert format_release_date(ReleaseDate.from_date(date(2023, 12, 31))) == "Dec 31, 2023"
