"""Pydantic models describing series metadata and session views."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .utils import clean_text, parse_leading_int

logger = logging.getLogger(__name__)

PLOT_PLACEHOLDER = "No description available."
TITLE_PLACEHOLDER = "Unknown Episode"
TITLE_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class ReleaseDate(BaseModel):
    """Calendar date as reported upstream (1-indexed month)."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = 1
    day: int = 1

    @field_validator("month", "day", mode="before")
    @classmethod
    def _default_missing_parts(cls, value: object) -> object:
        return 1 if value is None else value

    @classmethod
    def from_date(cls, value: date) -> "ReleaseDate":
        return cls(year=value.year, month=value.month, day=value.day)


class PrimaryImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str | None = None
    width: int | None = None
    height: int | None = None


class Rating(BaseModel):
    """Aggregate score and vote count for an episode."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    aggregate_rating: float | None = Field(default=None, alias="aggregateRating")
    vote_count: int | None = Field(default=None, alias="voteCount")


class Season(BaseModel):
    """A season entry exactly as the seasons endpoint labelled it."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str = Field(default="", alias="season")
    episode_count: int | None = Field(default=None, alias="episodeCount")

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, value: object) -> str:
        return clean_text(value)

    @property
    def number(self) -> int | None:
        """Return the parsed season number, or ``None`` for non-numeric labels."""

        return parse_leading_int(self.label)

    @classmethod
    def from_payload(cls, entry: Any) -> "Season":
        """Build a season from a raw entry, keeping its position even if malformed."""

        if not isinstance(entry, dict):
            return cls(label="")
        try:
            return cls.model_validate(entry)
        except ValidationError:
            return cls(label=clean_text(entry.get("season")))


class Episode(BaseModel):
    """A single watchable episode belonging to one season of a title."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    season_label: str = Field(alias="season")
    episode_number: int = Field(alias="episodeNumber", gt=0)
    plot: str = PLOT_PLACEHOLDER
    poster_image: PrimaryImage | None = Field(default=None, alias="primaryImage")
    rating: Rating | None = None
    release_date: ReleaseDate = Field(alias="releaseDate")

    @property
    def season_number(self) -> int:
        number = parse_leading_int(self.season_label)
        return 1 if number is None else number

    def poster_url(self, fallback: str) -> str:
        """Return the poster URL or ``fallback`` when the episode has none."""

        if self.poster_image and self.poster_image.url:
            return self.poster_image.url
        return fallback

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        season: int,
        today: date,
    ) -> "Episode | None":
        """Validate and normalise a raw episode record.

        Records without an id, a title or a positive episode number are
        rejected with ``None``. A missing release date defaults to ``today``,
        which makes such episodes releasable straight away.
        """

        if not isinstance(payload, dict):
            return None

        episode_id = clean_text(payload.get("id"))
        title = clean_text(payload.get("title"))
        number = parse_leading_int(payload.get("episodeNumber"))
        if not episode_id or not title or not number or number < 1:
            return None

        # Labels such as "Specials" carry no number; use the season requested.
        season_label = clean_text(payload.get("season"))
        if parse_leading_int(season_label) is None:
            season_label = str(season)

        data: dict[str, Any] = {
            "id": episode_id,
            "title": title,
            "season": season_label,
            "episodeNumber": number,
            "plot": clean_text(payload.get("plot")) or PLOT_PLACEHOLDER,
            "primaryImage": payload.get("primaryImage") or None,
            "rating": payload.get("rating") or None,
            "releaseDate": payload.get("releaseDate")
            or ReleaseDate.from_date(today),
        }
        try:
            return cls.model_validate(data)
        except ValidationError:
            pass
        # Artwork and rating are cosmetic; retry without them before dropping.
        data.update(primaryImage=None, rating=None)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            logger.debug("Dropping malformed episode %s: %s", episode_id, exc)
            return None


class CreateSessionRequest(BaseModel):
    title_id: str = Field(
        validation_alias=AliasChoices("title_id", "titleId", "imdb"),
        min_length=1,
        max_length=32,
        pattern=TITLE_ID_PATTERN,
    )


class SeasonRequest(BaseModel):
    season: int = Field(ge=0)


class ManualSelectionRequest(BaseModel):
    season: int = Field(ge=1)
    episode: int = Field(ge=1)


class EpisodeView(BaseModel):
    """Episode as rendered in the episode list or the now playing panel."""

    id: str
    title: str
    season: int
    episode_number: int
    code: str
    plot: str
    poster_url: str
    rating: float | None = None
    vote_count: int | None = None
    release_date: str
    released: bool
    selected: bool = False


class PlayerView(BaseModel):
    """What the embedded player should show."""

    src: str
    key: str
    title: str
    label: str
    loaded: bool
    revision: int = 0


class FallbackView(BaseModel):
    """Manual season/episode picker offered when metadata is unavailable."""

    message: str
    season: int
    episode: int
    season_options: list[int] = Field(default_factory=list)
    episode_options: list[int] = Field(default_factory=list)


class SessionView(BaseModel):
    """Snapshot of a series session for the presentation layer."""

    session_id: str
    title_id: str | None = None
    seasons: list[int] = Field(default_factory=list)
    current_season: int
    loading_seasons: bool = False
    loading_episodes: bool = False
    seasons_error: bool = False
    episodes_error: bool = False
    fallback: FallbackView | None = None
    query: str = ""
    episodes: list[EpisodeView] = Field(default_factory=list)
    now_playing: EpisodeView | None = None
    can_go_previous: bool = False
    can_go_next: bool = False
    player: PlayerView | None = None
