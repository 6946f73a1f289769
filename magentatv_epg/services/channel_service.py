"""
Channel List Service

Fetches the MagentaTV channel catalog and maps it to ChannelRecord objects.
"""
import logging
from typing import Any

import httpx

from magentatv_epg.errors import upstream_error_from
from magentatv_epg.schemas import ChannelRecord
from magentatv_epg.services.session_service import MagentaSession


logger = logging.getLogger(__name__)

CHANNEL_LIST_REQUEST = {
    "channelNamespace": 2,
    "filterlist": [{"key": "IsHide", "value": "-1"}],
    "metaDataVer": "Channel/1.1",
    "properties": [
        {
            "include": "/channellist/logicalChannel/contentId,/channellist/logicalChannel/name",
            "name": "logicalChannel",
        }
    ],
    "returnSatChannel": 0,
}


def parse_channel_list(payload: Any) -> list[ChannelRecord]:
    """
    Map an AllChannel response to channel records

    Entries without a content id or name are skipped. A malformed envelope
    yields an empty list.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("channellist"), list):
        logger.warning("AllChannel response has no channellist array")
        return []

    channels = []
    for entry in payload["channellist"]:
        if not isinstance(entry, dict):
            continue
        content_id, name = entry.get("contentId"), entry.get("name")
        if content_id in (None, "") or not name:
            logger.debug("Skipping channel entry without id or name: %s", entry)
            continue
        channels.append(ChannelRecord(lang="de", site_id=str(content_id), name=str(name)))
    return channels


class ChannelLister:
    """Lists the channels available on MagentaTV"""

    def __init__(self, client: httpx.AsyncClient, session: MagentaSession, api_base: str):
        self._client = client
        self._session = session
        self._url = f"{api_base}/AllChannel"

    async def fetch_channels(self) -> list[ChannelRecord]:
        """
        Fetch the channel catalog

        Raises:
            UpstreamError: If the session or channel request failed
        """
        headers = await self._session.get_auth_headers()

        try:
            response = await self._client.post(self._url, json=CHANNEL_LIST_REQUEST, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("AllChannel request failed: %s", exc)
            raise upstream_error_from(exc, "magentatv") from exc
        except ValueError:
            logger.warning("AllChannel response is not JSON")
            return []

        channels = parse_channel_list(payload)
        logger.info("Fetched %s channels", len(channels))
        return channels
