"""Pure projections over fetched seasons and episode lists."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..clock import Clock, system_clock
from ..models import Episode, Season
from .release import is_released


def season_numbers(seasons: Iterable[Season]) -> tuple[int, ...]:
    """Return the distinct numeric seasons in ascending order.

    Labels that do not parse as a number are left out.
    """

    numbers = {season.number for season in seasons}
    numbers.discard(None)
    return tuple(sorted(numbers))  # type: ignore[arg-type]


def initial_season(seasons: Sequence[Season]) -> int:
    """Season to open first: the first entry as returned upstream, else ``1``."""

    if not seasons:
        return 1
    return seasons[0].number or 1


def releasable(
    episodes: Iterable[Episode], clock: Clock = system_clock
) -> list[Episode]:
    return [episode for episode in episodes if is_released(episode, clock)]


def pick_initial_episode(
    episodes: Sequence[Episode], clock: Clock = system_clock
) -> Episode | None:
    """Return the last releasable episode in upstream order.

    Upstream lists are assumed to be in ascending episode order already, so
    the last releasable entry is the most recent one. No re-sorting happens.
    """

    released = releasable(episodes, clock)
    if not released:
        return None
    return released[-1]


def index_of(episodes: Sequence[Episode], episode: Episode | None) -> int:
    if episode is None:
        return -1
    for index, candidate in enumerate(episodes):
        if candidate.id == episode.id:
            return index
    return -1


def find_episode(episodes: Sequence[Episode], episode_id: str) -> Episode | None:
    for episode in episodes:
        if episode.id == episode_id:
            return episode
    return None


def can_step(
    episodes: Sequence[Episode], current: Episode | None, offset: int
) -> bool:
    """Return whether ``current`` has a neighbour ``offset`` places away."""

    index = index_of(episodes, current)
    if index < 0:
        return False
    return 0 <= index + offset < len(episodes)


def neighbour(
    episodes: Sequence[Episode], current: Episode | None, offset: int
) -> Episode | None:
    if not can_step(episodes, current, offset):
        return None
    return episodes[index_of(episodes, current) + offset]


def filter_episodes(episodes: Sequence[Episode], query: str) -> Sequence[Episode]:
    """Return episodes whose titles contain ``query``, ignoring case.

    A blank query returns ``episodes`` untouched.
    """

    needle = (query or "").strip().lower()
    if not needle:
        return episodes
    return [episode for episode in episodes if needle in episode.title.lower()]
