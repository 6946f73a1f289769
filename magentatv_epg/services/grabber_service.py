"""
MagentaTV Grabber Service

Wires the session, listing fetcher, channel lister, TMDB resolver and program
assembler together and owns the HTTP clients they share.
"""
import logging
from datetime import date, timedelta

import httpx

from magentatv_epg.config import CustomSettings, settings
from magentatv_epg.schemas import ChannelRecord, ProgramRecord
from magentatv_epg.services.channel_service import ChannelLister
from magentatv_epg.services.listing_service import ListingFetcher, parse_playbill
from magentatv_epg.services.program_assembler import ProgramAssembler
from magentatv_epg.services.session_service import MagentaSession
from magentatv_epg.services.tmdb_resolver import LookupCache, TMDBResolver
from magentatv_epg.utils.logging_helpers import (
    log_grab_summary,
    log_section_end,
    log_section_start,
)


logger = logging.getLogger(__name__)


class MagentaGrabber:
    """
    Entry point for grabbing MagentaTV listings.

    One grabber holds one MagentaTV session and one TMDB lookup cache, so
    repeated grabs reuse credentials and resolved ids. Use it as an async
    context manager or call aclose() when done.
    """

    def __init__(
        self,
        config: CustomSettings | None = None,
        *,
        magenta_transport: httpx.AsyncBaseTransport | None = None,
        tmdb_transport: httpx.AsyncBaseTransport | None = None,
        cache: LookupCache | None = None,
    ) -> None:
        """
        Args:
            config: Settings to use, defaults to the process settings
            magenta_transport: Transport for MagentaTV requests (tests)
            tmdb_transport: Transport for TMDB requests (tests)
            cache: Lookup cache to share between grabbers

        Raises:
            ConfigurationError: If TMDBBEARER is not configured
        """
        self.config = config if config is not None else settings
        bearer = self.config.require_tmdb_bearer()

        timeout = httpx.Timeout(self.config.http_timeout_sec)
        self._magenta_client = httpx.AsyncClient(timeout=timeout, transport=magenta_transport)
        self._tmdb_client = httpx.AsyncClient(timeout=timeout, transport=tmdb_transport)

        api_base = self.config.magenta_api_base
        self.session = MagentaSession(self._magenta_client, api_base, self.config.magenta_terminal_type)
        self.listings = ListingFetcher(self._magenta_client, self.session, api_base)
        self.channels = ChannelLister(self._magenta_client, self.session, api_base)

        self.cache = cache if cache is not None else LookupCache(
            negative_ttl_sec=self.config.tmdb_negative_cache_ttl_sec
        )
        self.resolver = TMDBResolver(self._tmdb_client, bearer, self.config.tmdb_api_base, self.cache)
        self.assembler = ProgramAssembler(self.resolver, max_concurrency=self.config.lookup_concurrency)

    async def __aenter__(self) -> "MagentaGrabber":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP clients"""
        await self._magenta_client.aclose()
        await self._tmdb_client.aclose()

    async def grab_programs(self, channel_id: str, day: date) -> list[ProgramRecord]:
        """
        Grab the programs of one channel for one day

        Raises:
            UpstreamError: If MagentaTV or TMDB failed terminally
        """
        payload = await self.listings.fetch(channel_id, day)
        items = parse_playbill(payload)
        programs = await self.assembler.assemble(items)
        log_grab_summary(
            logger, channel_id, day.isoformat(), len(items), len(programs), self.cache.stats()
        )
        return programs

    async def grab_days(self, channel_id: str, start: date, days: int | None = None) -> list[ProgramRecord]:
        """
        Grab consecutive days of one channel, in chronological order

        Args:
            channel_id: MagentaTV channel id
            start: First day
            days: Number of days, defaults to the configured grab_days
        """
        days = days or self.config.grab_days
        section = f"grab of channel {channel_id} ({days} day(s) from {start.isoformat()})"
        log_section_start(logger, section)

        programs: list[ProgramRecord] = []
        for offset in range(days):
            programs.extend(await self.grab_programs(channel_id, start + timedelta(days=offset)))

        log_section_end(logger, section)
        return programs

    async def grab_channels(self) -> list[ChannelRecord]:
        """
        Grab the channel catalog

        Raises:
            UpstreamError: If the channel list could not be fetched
        """
        return await self.channels.fetch_channels()
