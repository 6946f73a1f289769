"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging without excessive decorative separators.
"""
import logging


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_grab_summary(
    logger: logging.Logger,
    channel_id: str,
    day: str,
    items_count: int,
    programs_count: int,
    cache_stats: dict[str, int],
) -> None:
    """
    Log the outcome of one channel/day grab.

    Args:
        logger: Logger instance
        channel_id: MagentaTV channel id
        day: ISO date of the grabbed day
        items_count: Number of raw listing items received
        programs_count: Number of program records produced
        cache_stats: Sizes of the TMDB lookup caches
    """
    logger.info(
        f"Channel {channel_id} on {day}: {items_count} items -> {programs_count} programs "
        f"(TMDB cache: {cache_stats['series_ids']} series, {cache_stats['episode_ids']} episodes)"
    )
