"""
Shared fixtures: settings, raw playbill items and fake MagentaTV/TMDB APIs.
"""
import json
from typing import Callable

import httpx
import pytest

from magentatv_epg.config import CustomSettings


MAGENTA_BASE = "https://api.prod.sngtv.magentatv.de/EPG/JSON"
TMDB_BASE = "https://api.themoviedb.org/3"

AUTH_COOKIES = [
    ("set-cookie", "JSESSIONID=js123; Path=/EPG; HttpOnly"),
    ("set-cookie", "CSESSIONID=cs456; Path=/EPG"),
    ("set-cookie", "CSRFSESSION=csrf789; Path=/; Secure"),
    ("set-cookie", "OTHER=ignored; Path=/"),
]


def make_raw_item(**overrides) -> dict:
    """Build a PlayBillList entry as delivered by MagentaTV"""
    item = {
        "id": "pb-1",
        "name": "Tatort",
        "introduce": "Ein Mord in Münster.",
        "subName": "Der Hammer",
        "seasonNum": "2",
        "subNum": "5",
        "starttime": "2024-01-10 20:15:00",
        "endtime": "2024-01-10 21:45:00",
        "genres": "Drama und Krimi",
        "cast": {
            "director": "Kaspar Heidelbach",
            "producer": "Sonja Goslicki",
            "adaptor": "Stefan Cantz, Jan Hinter",
            "actor": "Axel Prahl, Jan Josef Liefers und Christine Urspruch",
        },
        "country": "de",
        "producedate": "2019",
        "isLive": "0",
        "pictures": [
            {"imageType": "17", "href": "http://img.magentatv.de/17.jpg"},
            {"imageType": "1", "href": "http://img.magentatv.de/1.jpg"},
            {"imageType": "18", "href": "https://img.magentatv.de/18.jpg"},
        ],
        "externalIds": json.dumps([
            {"type": "gnProgram", "id": "EP012345670001"},
            {"type": "imdb", "id": "tt0806910"},
        ]),
    }
    item.update(overrides)
    return item


class FakeAPI:
    """
    Records requests and answers them with a handler.

    The handler receives the httpx.Request and returns an httpx.Response.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def calls_to(self, path_suffix: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith(path_suffix)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)


def auth_response(token: str | None = "csrf-token") -> httpx.Response:
    body = {"retcode": "0"}
    if token is not None:
        body["csrfToken"] = token
    return httpx.Response(200, json=body, headers=AUTH_COOKIES)


def magenta_handler(playbill: dict | None = None, channels: dict | None = None):
    """Handler answering Authenticate, PlayBillList and AllChannel"""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/Authenticate"):
            return auth_response()
        if path.endswith("/PlayBillList"):
            return httpx.Response(200, json=playbill if playbill is not None else {"playbilllist": []})
        if path.endswith("/AllChannel"):
            return httpx.Response(200, json=channels if channels is not None else {"channellist": []})
        return httpx.Response(404)

    return handler


def tmdb_handler(find_results: dict[str, dict], episodes: dict[str, int] | None = None):
    """
    Handler answering TMDB find and episode requests

    Args:
        find_results: IMDB id -> find response body
        episodes: '/tv/{id}/season/{s}/episode/{e}' path suffix -> episode id
    """
    episodes = episodes or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if "/find/" in path:
            imdb_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json=find_results.get(imdb_id, {}))
        for suffix, episode_id in episodes.items():
            if path.endswith(suffix):
                return httpx.Response(200, json={"id": episode_id, "name": "Episode"})
        return httpx.Response(404, json={"status_code": 34})

    return handler


@pytest.fixture
def test_settings() -> CustomSettings:
    return CustomSettings(
        tmdb_bearer="test-bearer",
        magenta_api_base=MAGENTA_BASE,
        tmdb_api_base=TMDB_BASE,
        grab_days=1,
    )


@pytest.fixture
def raw_item() -> dict:
    return make_raw_item()
