"""Client for the seasons and episodes endpoints of the IMDb metadata API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..clock import Clock, system_clock
from ..config import Settings
from ..models import Episode, Season

logger = logging.getLogger(__name__)


class MetadataError(Exception):
    """Raised when a metadata request fails or returns an unusable payload."""

    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(message)
        self.original_exception = original_exception


class ImdbApiClient:
    """Thin wrapper around the title seasons/episodes endpoints.

    Each call issues exactly one request. Transport errors, non-2xx statuses
    and payloads without a usable list all raise :class:`MetadataError`;
    individual malformed records are skipped.
    """

    _SEASONS_PATH = "/titles/{title_id}/seasons"
    _EPISODES_PATH = "/titles/{title_id}/episodes"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        clock: Clock = system_clock,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._clock = clock

    async def fetch_seasons(self, title_id: str) -> list[Season]:
        """Return the seasons of ``title_id`` in upstream order."""

        payload = await self._get_json(
            self._SEASONS_PATH.format(title_id=quote(title_id, safe=""))
        )
        raw_seasons = payload.get("seasons")
        if not isinstance(raw_seasons, list) or not raw_seasons:
            raise MetadataError(f"No seasons returned for {title_id}")
        return [Season.from_payload(entry) for entry in raw_seasons]

    async def fetch_episodes(self, title_id: str, season: int) -> list[Episode]:
        """Return the valid episodes of one season.

        Only the first page is requested; a season longer than
        ``episode_page_size`` is truncated.
        """

        payload = await self._get_json(
            self._EPISODES_PATH.format(title_id=quote(title_id, safe="")),
            params={"season": season, "pageSize": self._settings.episode_page_size},
        )
        raw_episodes = payload.get("episodes")
        if not isinstance(raw_episodes, list) or not raw_episodes:
            raise MetadataError(f"No episodes returned for {title_id} S{season}")

        if payload.get("nextPageToken"):
            logger.debug(
                "Episode list for %s S%s has more pages; only the first is used",
                title_id,
                season,
            )

        today = self._clock().date()
        episodes: list[Episode] = []
        seen: set[str] = set()
        for entry in raw_episodes:
            episode = Episode.from_payload(entry, season=season, today=today)
            if episode is None or episode.id in seen:
                continue
            seen.add(episode.id)
            episodes.append(episode)

        if not episodes:
            raise MetadataError(f"No valid episodes returned for {title_id} S{season}")
        return episodes

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MetadataError(
                f"Metadata request {path} failed with HTTP {exc.response.status_code}",
                exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise MetadataError(f"Metadata request {path} failed: {exc}", exc) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataError(f"Metadata response for {path} is not JSON", exc) from exc
        if not isinstance(payload, dict):
            raise MetadataError(f"Metadata response for {path} is not an object")
        return payload
