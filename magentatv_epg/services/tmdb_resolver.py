"""
TMDB Cross-Reference Resolver

Resolves TMDB series and episode ids for the IMDB ids attached to listing
items and builds the episode number entries of a program.

Lookups are memoized in a LookupCache owned by the caller:
- successful series lookups are cached, misses are not (they are retried on
  the next occurrence unless a negative cache TTL is configured)
- episode lookups are cached on first fetch whatever the outcome
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from collections.abc import AsyncIterator, Callable, Hashable
from typing import Any

import httpx

from magentatv_epg.errors import ConfigurationError, UpstreamError, upstream_error_from
from magentatv_epg.schemas import EpisodeNumber, RawListingItem
from magentatv_epg.services.field_parsers import IMDB_TYPE, build_xmltv_ns


logger = logging.getLogger(__name__)

# Result categories of the TMDB find endpoint, in priority order
FIND_RESULT_CATEGORIES = (
    "tv_results",
    "tv_episode_results",
    "tv_season_results",
    "movie_results",
)

EpisodeKey = tuple[int, str, str]


@dataclass(slots=True)
class LookupCache:
    """
    Memoization state shared by the lookups of one grabber.

    series_ids maps IMDB ids to TMDB ids. episode_ids maps
    (series id, season, episode) to a TMDB episode id or None.
    negative_ttl_sec > 0 remembers series misses for that many seconds.
    """
    negative_ttl_sec: float = 0
    series_ids: dict[str, int] = field(default_factory=dict)
    episode_ids: dict[EpisodeKey, int | None] = field(default_factory=dict)
    series_misses: dict[str, float] = field(default_factory=dict)
    clock: Callable[[], float] = time.monotonic

    def remember_miss(self, imdb_id: str) -> None:
        if self.negative_ttl_sec > 0:
            self.series_misses[imdb_id] = self.clock() + self.negative_ttl_sec

    def is_known_miss(self, imdb_id: str) -> bool:
        expires_at = self.series_misses.get(imdb_id)
        if expires_at is None:
            return False
        if self.clock() >= expires_at:
            del self.series_misses[imdb_id]
            return False
        return True

    def stats(self) -> dict[str, int]:
        return {
            "series_ids": len(self.series_ids),
            "episode_ids": len(self.episode_ids),
            "series_misses": len(self.series_misses),
        }


def first_find_result_id(payload: Any) -> int | None:
    """Return the id of the first match of the find endpoint, by category priority"""
    if not isinstance(payload, dict):
        return None
    for category in FIND_RESULT_CATEGORIES:
        results = payload.get(category)
        if isinstance(results, list) and results and isinstance(results[0], dict):
            result_id = results[0].get("id")
            if result_id:
                return result_id
    return None


class TMDBResolver:
    """Resolves TMDB identifiers with memoized, single-flight lookups"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        bearer: str | None,
        api_base: str,
        cache: LookupCache | None = None,
    ):
        """
        Args:
            client: HTTP client used for TMDB requests
            bearer: TMDB API read access token
            api_base: TMDB API base URL
            cache: Lookup cache, a fresh one is created if omitted

        Raises:
            ConfigurationError: If no bearer token is given
        """
        if not bearer:
            raise ConfigurationError("A TMDB bearer token is required for cross-reference lookups")
        self._client = client
        self._api_base = api_base
        self._headers = {"accept": "application/json", "Authorization": f"Bearer {bearer}"}
        self.cache = cache if cache is not None else LookupCache()
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._lock_users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def _single_flight(self, key: Hashable) -> AsyncIterator[None]:
        """Serialize lookups of one key, the lock is dropped once no caller holds or awaits it"""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _get(self, path: str, params: dict | None = None) -> Any:
        """
        GET a TMDB resource

        Returns:
            Decoded JSON body, or None for a 404

        Raises:
            UpstreamError: For any other failure
        """
        try:
            response = await self._client.get(
                f"{self._api_base}{path}", params=params, headers=self._headers
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise upstream_error_from(exc, "tmdb") from exc
        except ValueError as exc:
            raise UpstreamError(
                f"tmdb returned invalid JSON for {path}", service="tmdb", retryable=True
            ) from exc

    async def resolve_series_id(self, imdb_id: str) -> int | None:
        """
        Resolve the TMDB id for an IMDB id

        Returns:
            The TMDB id, or None if TMDB knows no match

        Raises:
            UpstreamError: If the lookup failed
        """
        cached = self.cache.series_ids.get(imdb_id)
        if cached is not None:
            return cached
        if self.cache.is_known_miss(imdb_id):
            return None

        async with self._single_flight(("series", imdb_id)):
            cached = self.cache.series_ids.get(imdb_id)
            if cached is not None:
                return cached
            if self.cache.is_known_miss(imdb_id):
                return None

            payload = await self._get(f"/find/{imdb_id}", params={"external_source": "imdb_id"})
            series_id = first_find_result_id(payload)
            if series_id is None:
                logger.info("No TMDB results found for IMDB id %s", imdb_id)
                self.cache.remember_miss(imdb_id)
                return None

            self.cache.series_ids[imdb_id] = series_id
            return series_id

    async def resolve_episode_id(self, series_id: int, season: str, episode: str) -> int | None:
        """
        Resolve the TMDB episode id of a series episode

        The outcome is cached on first fetch, including a missing id.

        Raises:
            UpstreamError: If the lookup failed
        """
        key: EpisodeKey = (series_id, str(season), str(episode))
        if key in self.cache.episode_ids:
            return self.cache.episode_ids[key]

        async with self._single_flight(("episode", key)):
            if key in self.cache.episode_ids:
                return self.cache.episode_ids[key]

            payload = await self._get(f"/tv/{series_id}/season/{season}/episode/{episode}")
            episode_id = payload.get("id") if isinstance(payload, dict) else None
            if episode_id is None:
                logger.info(
                    "No TMDB episode found for series %s S%sE%s", series_id, season, episode
                )
            self.cache.episode_ids[key] = episode_id
            return episode_id

    async def _lookup_or_none(self, lookup, *args) -> int | None:
        """Run a lookup, turning transient failures into None"""
        try:
            return await lookup(*args)
        except UpstreamError as exc:
            if not exc.retryable:
                raise
            logger.warning("Transient TMDB failure, leaving id unresolved: %s", exc)
            return None

    async def resolve_episode_numbers(self, item: RawListingItem) -> list[EpisodeNumber]:
        """
        Build episode number entries for every IMDB id of an item

        Four entries are produced per IMDB id: xmltv_ns, the IMDB series
        reference, the TMDB series reference and the TMDB episode reference.
        Entries whose datum is unavailable carry a None value and must be
        filtered before emission.

        Raises:
            UpstreamError: On terminal TMDB failures (e.g. a rejected token)
        """
        episode_numbers: list[EpisodeNumber] = []
        xmltv_ns = build_xmltv_ns(item.season_num, item.sub_num)

        for external_id in item.external_ids_of(IMDB_TYPE):
            series_id = await self._lookup_or_none(self.resolve_series_id, external_id.id)
            episode_id = None
            if series_id and item.season_num and item.sub_num:
                episode_id = await self._lookup_or_none(
                    self.resolve_episode_id, series_id, item.season_num, item.sub_num
                )

            episode_numbers.extend([
                EpisodeNumber(system="xmltv_ns", value=xmltv_ns),
                EpisodeNumber(system="imdb.com", value=f"series/{external_id.id}"),
                EpisodeNumber(
                    system="themoviedb.org",
                    value=f"series/{series_id}" if series_id else None,
                ),
                EpisodeNumber(
                    system="themoviedb.org",
                    value=f"episode/{episode_id}" if episode_id else None,
                ),
            ])

        return episode_numbers
