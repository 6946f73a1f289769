"""
MagentaTV Session Service

Obtains the CSRF token and session cookies required by the MagentaTV EPG API.
Credentials are fetched lazily once per MagentaSession and reused afterwards.
"""
import asyncio
import logging
import re

import httpx

from magentatv_epg.errors import SessionError, upstream_error_from


logger = logging.getLogger(__name__)

COOKIES_TO_EXTRACT = ("JSESSIONID", "CSESSIONID", "CSRFSESSION")

# Fixed device identity of an anonymous web client
DEVICE_IDENTITY = (
    '{"terminalid":"00:00:00:00:00:00","mac":"00:00:00:00:00:00",'
    '"terminaltype":"WEBTV","utcEnable":1,"timezone":"Etc/GMT0",'
    '"userType":3,"terminalvendor":"Unknown"}'
)


def extract_cookies(set_cookie_headers: list[str]) -> str:
    """
    Build the Cookie header value from Set-Cookie headers

    Args:
        set_cookie_headers: Raw Set-Cookie header values

    Returns:
        The extracted cookies ('NAME=value;') joined with a single space
    """
    extracted = []
    for cookie_name in COOKIES_TO_EXTRACT:
        pattern = re.compile(rf"{cookie_name}=(.+?)(;|$)")
        for header in set_cookie_headers:
            match = pattern.search(header)
            if match:
                extracted.append(match.group(0))
                break
    return " ".join(extracted)


class MagentaSession:
    """
    Session credential provider for MagentaTV.

    Holds the CSRF token and cookie pair. Concurrent callers share a single
    authenticate request through an internal asyncio.Lock. Once set, the
    credentials are never refreshed.
    """

    def __init__(self, client: httpx.AsyncClient, api_base: str, terminal_type: str):
        """
        Args:
            client: HTTP client used for the authenticate request
            api_base: MagentaTV EPG JSON API base URL
            terminal_type: Value of the `T` query parameter
        """
        self._client = client
        self._url = f"{api_base}/Authenticate"
        self._terminal_type = terminal_type
        self._csrf_token: str | None = None
        self._cookie: str | None = None
        self._lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._csrf_token and self._cookie)

    async def ensure_session(self) -> None:
        """
        Authenticate unless credentials are already present.

        Raises:
            SessionError: If the response carried no csrfToken
            UpstreamError: If the authenticate request failed
        """
        if self.is_authenticated:
            return

        async with self._lock:
            # Another caller may have authenticated while we waited
            if self.is_authenticated:
                return
            await self._authenticate()

    async def _authenticate(self) -> None:
        logger.info("Authenticating against MagentaTV...")
        try:
            response = await self._client.post(
                self._url,
                params={"SID": "firstup", "T": self._terminal_type},
                content=DEVICE_IDENTITY,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("MagentaTV authentication failed: %s", exc)
            raise upstream_error_from(exc, "magentatv") from exc

        cookie = extract_cookies(response.headers.get_list("set-cookie"))

        try:
            body = response.json()
        except ValueError:
            body = None
        csrf_token = body.get("csrfToken") if isinstance(body, dict) else None

        if not csrf_token:
            logger.warning("csrfToken not found in the authenticate response")
            raise SessionError("MagentaTV authenticate response did not contain a csrfToken")

        if not cookie:
            logger.warning("No session cookies found in the authenticate response")

        self._csrf_token = csrf_token
        self._cookie = cookie
        logger.info("MagentaTV session established")

    async def get_auth_headers(self) -> dict[str, str]:
        """
        Return request headers carrying the session credentials.

        Raises:
            SessionError: If no token could be obtained
            UpstreamError: If the authenticate request failed
        """
        await self.ensure_session()
        return {"X_CSRFTOKEN": self._csrf_token or "", "Cookie": self._cookie or ""}
