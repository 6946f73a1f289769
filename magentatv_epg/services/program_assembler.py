"""
Program Assembler

Turns raw listing items into ProgramRecord objects by running the field
parsers and the TMDB cross-reference resolver for every item.
"""
import asyncio
import logging
from typing import Sequence

from magentatv_epg.schemas import EpisodeNumber, ProgramRecord, RawListingItem
from magentatv_epg.services import field_parsers as parsers
from magentatv_epg.services.tmdb_resolver import TMDBResolver


logger = logging.getLogger(__name__)


def filter_episode_numbers(entries: Sequence[EpisodeNumber]) -> list[EpisodeNumber]:
    """Drop episode number entries without a value"""
    return [entry for entry in entries if entry.value is not None]


class ProgramAssembler:
    """Builds program records, preserving the order of the input items"""

    def __init__(self, resolver: TMDBResolver, *, max_concurrency: int = 1) -> None:
        self._resolver = resolver
        self._concurrency = max(1, max_concurrency)

    async def assemble_item(self, item: RawListingItem) -> ProgramRecord | None:
        """
        Build the program record of one item

        Returns:
            The record, or None if the item has no parseable start/stop time
        """
        start = parsers.parse_start(item)
        stop = parsers.parse_stop(item)
        if start is None or stop is None:
            logger.warning(
                "Skipping '%s': unparseable times (start=%r, stop=%r)",
                item.name, item.starttime, item.endtime,
            )
            return None

        images = parsers.parse_images(item)
        episode_numbers = await self._resolver.resolve_episode_numbers(item)

        return ProgramRecord(
            title=item.name,
            description=item.introduce,
            images=images,
            category=parsers.parse_category(item),
            start=start,
            stop=stop,
            sub_title=item.sub_name,
            season=item.season_num,
            episode=item.sub_num,
            directors=parsers.parse_directors(item),
            producers=parsers.parse_producers(item),
            adapters=parsers.parse_adapters(item),
            actors=parsers.parse_actors(item),
            country=parsers.parse_country(item),
            date=item.producedate,
            live=parsers.parse_live(item),
            urls=parsers.parse_urls(item),
            episode_numbers=filter_episode_numbers(episode_numbers),
            icon=parsers.parse_icon(images),
        )

    async def assemble(self, items: Sequence[RawListingItem]) -> list[ProgramRecord]:
        """
        Build program records for all items

        Items are processed one after another, or concurrently when the
        assembler was created with max_concurrency > 1. Output order always
        follows input order.

        Raises:
            UpstreamError: On terminal TMDB failures
        """
        if self._concurrency == 1:
            records = [await self.assemble_item(item) for item in items]
        else:
            semaphore = asyncio.Semaphore(self._concurrency)

            async def _bounded(item: RawListingItem) -> ProgramRecord | None:
                async with semaphore:
                    return await self.assemble_item(item)

            tasks = [asyncio.ensure_future(_bounded(item)) for item in items]
            try:
                records = await asyncio.gather(*tasks)
            except BaseException:
                # no lookup may outlive a failed assemble
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        programs = [record for record in records if record is not None]
        logger.debug("Assembled %s of %s listing items", len(programs), len(items))
        return programs
