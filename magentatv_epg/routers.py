from datetime import datetime, timezone
from typing import Annotated
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from magentatv_epg.dependencies import get_grabber
from magentatv_epg.schemas import ChannelsResponse, ProgramsResponse
from magentatv_epg.services import MagentaGrabber
from magentatv_epg.utils.timezone import DateFormatError, parse_request_date, utc_now_iso


logger = logging.getLogger(__name__)

main_router = APIRouter()


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    return {
        "service": "MagentaTV EPG Adapter",
        "version": "0.1.0",
        "endpoints": {
            "channels": "/channels - List MagentaTV channels",
            "programs": "/programs/{channel_id} - Programs of a channel (?date=YYYY-MM-DD&days=N)",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(grabber: Annotated[MagentaGrabber, Depends(get_grabber)]) -> dict:
    """Health check endpoint"""
    return {
        "status": "ok",
        "session_established": grabber.session.is_authenticated,
        "tmdb_cache": grabber.cache.stats(),
    }


@main_router.get("/channels", response_model=ChannelsResponse)
async def list_channels(grabber: Annotated[MagentaGrabber, Depends(get_grabber)]) -> ChannelsResponse:
    """List all channels offered by MagentaTV"""
    channels = await grabber.grab_channels()
    return ChannelsResponse(
        timestamp=utc_now_iso(),
        total_channels=len(channels),
        channels=channels,
    )


@main_router.get("/programs/{channel_id}", response_model=ProgramsResponse)
async def list_programs(
    channel_id: str,
    grabber: Annotated[MagentaGrabber, Depends(get_grabber)],
    date: Annotated[str | None, Query(description="First day (YYYY-MM-DD), defaults to today (UTC)")] = None,
    days: Annotated[int | None, Query(ge=1, le=14, description="Number of days")] = None,
) -> ProgramsResponse:
    """
    Get normalized programs of one channel

    Args:
        channel_id: MagentaTV channel content id
        date: First day to fetch
        days: Number of consecutive days, defaults to GRAB_DAYS

    Returns:
        Programs in chronological order with TMDB cross references
    """
    try:
        start = parse_request_date(date) if date else datetime.now(timezone.utc).date()
    except DateFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    days = days or grabber.config.grab_days
    logger.info("Programs requested for channel %s from %s (%s day(s))", channel_id, start, days)
    programs = await grabber.grab_days(channel_id, start, days)

    return ProgramsResponse(
        timestamp=utc_now_iso(),
        channel_id=channel_id,
        from_date=start,
        days=days,
        total_programs=len(programs),
        programs=programs,
    )
