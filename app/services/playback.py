"""Build addresses and labels for the embedded TV player."""

from __future__ import annotations

from urllib.parse import urlencode

EMBED_TV_PATH = "/embed/tv"


def build_embed_url(domain: str, title_id: str, season: int, episode: int) -> str:
    """Return ``{domain}/embed/tv?imdb=..&season=..&episode=..``."""

    query = urlencode({"imdb": title_id, "season": season, "episode": episode})
    return f"{domain.rstrip('/')}{EMBED_TV_PATH}?{query}"


def episode_code(season: int, episode: int) -> str:
    return f"S{season}E{episode:02d}"


def player_key(title_id: str, season: int, episode: int) -> str:
    """Identity of the player frame; the frame reloads whenever this changes."""

    return f"{title_id}-{season}-{episode}"


def loading_label(season: int, episode: int) -> str:
    return f"Loading {episode_code(season, episode)}"


def player_title(season: int, episode: int) -> str:
    return f"TV Series Player - S{season}E{episode}"
