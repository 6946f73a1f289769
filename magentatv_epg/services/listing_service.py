"""
Listing Fetch Service

Requests the PlayBillList of one channel and day from MagentaTV and turns the
raw envelope into RawListingItem objects.
"""
import logging
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError

from magentatv_epg.errors import upstream_error_from
from magentatv_epg.schemas import RawListingItem
from magentatv_epg.services.session_service import MagentaSession
from magentatv_epg.utils.timezone import day_window


logger = logging.getLogger(__name__)

PLAYBILL_FIELDS = (
    "endtime,genres,id,name,starttime,channelid,pictures,introduce,"
    "subName,seasonNum,subNum,cast,country,producedate,externalIds"
)


def build_playbill_request(channel_id: str, day: date) -> dict:
    """Build the PlayBillList request body for one channel and day"""
    begintime, endtime = day_window(day)
    return {
        "count": -1,
        "isFillProgram": 1,
        "offset": 0,
        "properties": [{"include": PLAYBILL_FIELDS, "name": "playbill"}],
        "type": 2,
        "begintime": begintime,
        "channelid": channel_id,
        "endtime": endtime,
    }


def parse_playbill(payload: Any) -> list[RawListingItem]:
    """
    Extract listing items from a PlayBillList response

    Args:
        payload: Decoded JSON body

    Returns:
        Listing items in upstream order; empty if the envelope is malformed
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("playbilllist"), list):
        logger.warning("PlayBillList response has no playbilllist array")
        return []

    items = []
    for index, raw in enumerate(payload["playbilllist"]):
        if not isinstance(raw, dict):
            logger.warning("Skipping playbill entry %s: not an object", index)
            continue
        try:
            items.append(RawListingItem.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping playbill entry %s: %s", index, exc)
    return items


class ListingFetcher:
    """Fetches raw PlayBillList payloads using session credentials"""

    def __init__(self, client: httpx.AsyncClient, session: MagentaSession, api_base: str):
        self._client = client
        self._session = session
        self._url = f"{api_base}/PlayBillList"

    async def fetch(self, channel_id: str, day: date) -> Any:
        """
        Fetch the raw listing of one channel for one day

        Args:
            channel_id: MagentaTV channel content id
            day: Day to fetch

        Returns:
            Decoded JSON body, or None if the body is not JSON

        Raises:
            UpstreamError: If the session or listing request failed
        """
        headers = await self._session.get_auth_headers()
        body = build_playbill_request(channel_id, day)
        logger.debug("Fetching playbill for channel %s on %s", channel_id, day.isoformat())

        try:
            response = await self._client.post(self._url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("PlayBillList request failed for channel %s: %s", channel_id, exc)
            raise upstream_error_from(exc, "magentatv") from exc

        try:
            return response.json()
        except ValueError:
            logger.warning("PlayBillList response for channel %s is not JSON", channel_id)
            return None
