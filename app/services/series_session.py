"""Season/episode orchestration for a single series viewing session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from ..clock import Clock, system_clock
from ..config import Settings
from ..models import (
    TITLE_PLACEHOLDER,
    Episode,
    EpisodeView,
    FallbackView,
    PlayerView,
    Season,
    SessionView,
)
from . import episodes as projections
from .imdb import MetadataError
from .playback import (
    build_embed_url,
    episode_code,
    loading_label,
    player_key,
    player_title,
)
from .release import format_release_date, is_released

logger = logging.getLogger(__name__)


class MetadataSource(Protocol):
    async def fetch_seasons(self, title_id: str) -> list[Season]: ...

    async def fetch_episodes(self, title_id: str, season: int) -> list[Episode]: ...


class FallbackInactiveError(RuntimeError):
    """Raised when the manual picker is used while metadata is available."""


@dataclass(slots=True)
class FetchState:
    """Loading/error pair tracked separately for seasons and episodes."""

    loading: bool = False
    error: bool = False


class SeriesSession:
    """In-memory state behind one viewer watching one series.

    The session discovers a title's seasons, loads one season's episodes at a
    time, auto-selects the latest released episode once per title and resolves
    manual, previous and next selection. Metadata failures never raise; they
    set ``seasons_state.error`` / ``episodes_state.error`` and switch the
    session into a manual picker mode that addresses the player by raw
    season/episode numbers.

    Every episodes request is tagged with a generation number and only the
    newest request may write its result, so a slow response for a season the
    viewer already left is discarded.
    """

    def __init__(
        self,
        settings: Settings,
        source: MetadataSource,
        *,
        session_id: str = "",
        clock: Clock = system_clock,
    ) -> None:
        self._settings = settings
        self._source = source
        self._clock = clock
        self.session_id = session_id
        self._title_generation = 0
        self._episode_generation = 0
        # Bumped on every hard player transition, never reset.
        self.player_revision = 0
        self._reset(None)

    def _reset(self, title_id: str | None) -> None:
        self.title_id = title_id
        self.seasons: tuple[Season, ...] = ()
        self.season_numbers: tuple[int, ...] = ()
        self.current_season = 1
        self.current_episode = 1
        self.episodes: tuple[Episode, ...] = ()
        self.episodes_season: int | None = None
        self.selected: Episode | None = None
        self.initial_selection_pending = True
        self.seasons_state = FetchState()
        self.episodes_state = FetchState()
        self.manual_season = 1
        self.manual_episode = 1
        self._loaded_key: str | None = None

    # ------------------------------------------------------------------
    # Fetch orchestration
    # ------------------------------------------------------------------
    async def load_title(self, title_id: str) -> None:
        """Discard all state for the previous title and load ``title_id``.

        Seasons are fetched first; the first episodes request is only issued
        once the initial season is known.
        """

        self._title_generation += 1
        self._episode_generation += 1
        self._reset(title_id)
        logger.info("Session %s loading title %s", self.session_id, title_id)

        if await self._fetch_seasons():
            await self._fetch_episodes()

    async def change_season(self, season: int) -> None:
        """Browse another season without touching the selected episode."""

        if self.title_id is None:
            return
        if self.seasons_state.loading or self.seasons_state.error:
            return
        if self.season_numbers and season not in self.season_numbers:
            raise ValueError(f"Season {season} is not available")
        if season == self.current_season and (
            self.episodes_state.loading or season == self.episodes_season
        ):
            return
        self.current_season = season
        await self._fetch_episodes()

    async def _fetch_seasons(self) -> bool:
        title_id = self.title_id
        assert title_id is not None
        title_generation = self._title_generation
        self.seasons_state = FetchState(loading=True)
        try:
            seasons = await self._source.fetch_seasons(title_id)
        except MetadataError as exc:
            if title_generation != self._title_generation:
                return False
            logger.warning("Failed to fetch seasons for %s: %s", title_id, exc)
            self.seasons_state = FetchState(error=True)
            self._enter_fallback()
            return False

        if title_generation != self._title_generation:
            logger.debug("Discarding stale seasons for %s", title_id)
            return False

        self.seasons = tuple(seasons)
        self.season_numbers = projections.season_numbers(self.seasons)
        self.current_season = projections.initial_season(self.seasons)
        self.seasons_state = FetchState()
        return True

    async def _fetch_episodes(self) -> None:
        title_id = self.title_id
        assert title_id is not None
        season = self.current_season
        self._episode_generation += 1
        generation = self._episode_generation
        self.episodes_state = FetchState(loading=True)

        try:
            fetched = await self._source.fetch_episodes(title_id, season)
        except MetadataError as exc:
            if generation != self._episode_generation:
                logger.debug(
                    "Ignoring stale episodes failure for %s S%s", title_id, season
                )
                return
            logger.warning(
                "Failed to fetch episodes for %s S%s: %s", title_id, season, exc
            )
            self.episodes = ()
            self.episodes_season = None
            self.episodes_state = FetchState(error=True)
            self._enter_fallback()
            return

        if generation != self._episode_generation:
            logger.debug("Discarding stale episodes for %s S%s", title_id, season)
            return

        self.episodes = tuple(fetched)
        self.episodes_season = season
        self.episodes_state = FetchState()
        if self.initial_selection_pending:
            self._run_initial_selection()

    def _run_initial_selection(self) -> None:
        self.initial_selection_pending = False
        episode = projections.pick_initial_episode(self.episodes, self._clock)
        if episode is None:
            logger.info("No released episodes to auto-play for %s", self.title_id)
            return
        self._apply_selection(episode)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_episode(self, episode_id: str) -> bool:
        """Play an episode from the loaded list.

        Returns ``False`` without changing anything when the session is in
        fallback mode, the episode is unreleased or already playing. Raises
        ``LookupError`` for ids that are not in the loaded list.
        """

        if self.fallback_active:
            return False
        episode = projections.find_episode(self.episodes, episode_id)
        if episode is None:
            raise LookupError(f"Episode {episode_id} is not loaded")
        return self._select(episode)

    def next_episode(self) -> bool:
        return self._step(1)

    def previous_episode(self) -> bool:
        return self._step(-1)

    def _step(self, offset: int) -> bool:
        if self.fallback_active:
            return False
        target = projections.neighbour(self.episodes, self.selected, offset)
        if target is None:
            return False
        return self._select(target)

    def _select(self, episode: Episode) -> bool:
        if not is_released(episode, self._clock):
            return False
        if self.selected is not None and self.selected.id == episode.id:
            return False
        self._apply_selection(episode)
        return True

    def _apply_selection(self, episode: Episode) -> None:
        self.selected = episode
        self.current_episode = episode.episode_number
        self.current_season = episode.season_number
        self.player_revision += 1
        logger.debug(
            "Session %s selected %s %s",
            self.session_id,
            self.title_id,
            episode_code(episode.season_number, episode.episode_number),
        )

    @property
    def can_go_previous(self) -> bool:
        return not self.fallback_active and projections.can_step(
            self.episodes, self.selected, -1
        )

    @property
    def can_go_next(self) -> bool:
        return not self.fallback_active and projections.can_step(
            self.episodes, self.selected, 1
        )

    # ------------------------------------------------------------------
    # Fallback mode
    # ------------------------------------------------------------------
    @property
    def fallback_active(self) -> bool:
        return self.seasons_state.error or self.episodes_state.error

    @property
    def fallback_message(self) -> str | None:
        if self.seasons_state.error and self.episodes_state.error:
            return "Unable to load seasons and episodes information."
        if self.seasons_state.error:
            return "Unable to load seasons information."
        if self.episodes_state.error:
            return "Unable to load episodes information."
        return None

    def _enter_fallback(self) -> None:
        season, episode = self._browsing_position()
        self.manual_season = season
        self.manual_episode = episode

    def choose_manual(self, season: int, episode: int) -> None:
        """Point the player at raw season/episode numbers while metadata is down."""

        if not self.fallback_active:
            raise FallbackInactiveError(
                "Manual selection is only available in fallback mode"
            )
        if season < 1 or episode < 1:
            raise ValueError("Season and episode must be positive")
        self.manual_season = season
        self.manual_episode = episode
        self.player_revision += 1

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------
    def _browsing_position(self) -> tuple[int, int]:
        if self.selected is not None:
            return self.selected.season_number, self.selected.episode_number
        return self.current_season, self.current_episode

    def effective_position(self) -> tuple[int, int]:
        """Season and episode the player should show right now."""

        if self.fallback_active:
            return self.manual_season, self.manual_episode
        return self._browsing_position()

    def player_key(self) -> str | None:
        if self.title_id is None:
            return None
        return player_key(self.title_id, *self.effective_position())

    def playback_url(self) -> str | None:
        if self.title_id is None:
            return None
        return build_embed_url(
            self._settings.embed_domain, self.title_id, *self.effective_position()
        )

    @property
    def player_loaded(self) -> bool:
        key = self.player_key()
        return key is not None and key == self._loaded_key

    def mark_player_loaded(self) -> None:
        """Record that the frame for the current player key finished loading."""

        self._loaded_key = self.player_key()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def visible_episodes(self, query: str = "") -> Sequence[Episode]:
        if self.fallback_active:
            return ()
        return projections.filter_episodes(self.episodes, query)

    def episode_view(self, episode: Episode) -> EpisodeView:
        rating = episode.rating
        return EpisodeView(
            id=episode.id,
            title=episode.title or TITLE_PLACEHOLDER,
            season=episode.season_number,
            episode_number=episode.episode_number,
            code=episode_code(episode.season_number, episode.episode_number),
            plot=episode.plot,
            poster_url=episode.poster_url(self._settings.fallback_image),
            rating=rating.aggregate_rating if rating else None,
            vote_count=rating.vote_count if rating else None,
            release_date=format_release_date(episode.release_date),
            released=is_released(episode, self._clock),
            selected=self.selected is not None and self.selected.id == episode.id,
        )

    def view(self, query: str = "") -> SessionView:
        """Return the presentation snapshot, filtering episodes by ``query``."""

        fallback: FallbackView | None = None
        if self.fallback_active:
            fallback = FallbackView(
                message=self.fallback_message or "",
                season=self.manual_season,
                episode=self.manual_episode,
                season_options=list(range(1, self._settings.manual_season_limit + 1)),
                episode_options=list(range(1, self._settings.manual_episode_limit + 1)),
            )

        now_playing: EpisodeView | None = None
        if self.selected is not None and not self.fallback_active:
            now_playing = self.episode_view(self.selected)

        player: PlayerView | None = None
        url = self.playback_url()
        key = self.player_key()
        if url is not None and key is not None:
            season, episode = self.effective_position()
            player = PlayerView(
                src=url,
                key=key,
                title=player_title(season, episode),
                label=loading_label(season, episode),
                loaded=self.player_loaded,
                revision=self.player_revision,
            )

        return SessionView(
            session_id=self.session_id,
            title_id=self.title_id,
            seasons=list(self.season_numbers),
            current_season=self.current_season,
            loading_seasons=self.seasons_state.loading,
            loading_episodes=self.episodes_state.loading,
            seasons_error=self.seasons_state.error,
            episodes_error=self.episodes_state.error,
            fallback=fallback,
            query=query,
            episodes=[self.episode_view(ep) for ep in self.visible_episodes(query)],
            now_playing=now_playing,
            can_go_previous=self.can_go_previous,
            can_go_next=self.can_go_next,
            player=player,
        )
