"""
Unit tests for the listing field parsers.
"""
import json
from datetime import datetime, timezone

import pytest

from magentatv_epg.schemas import Image, RawListingItem
from magentatv_epg.services import field_parsers as parsers
from tests.conftest import make_raw_item


def _item(**overrides) -> RawListingItem:
    return RawListingItem.model_validate(make_raw_item(**overrides))


def _external_ids(*pairs: tuple[str, str]) -> str:
    return json.dumps([{"type": id_type, "id": id_value} for id_type, id_value in pairs])


class TestSplitNames:
    """Tests for the delimiter handling shared by cast and genre parsers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Drama und Krimi", ["Drama", "Krimi"]),
            ("Drama, Krimi", ["Drama", "Krimi"]),
            ("Drama; Krimi ,Thriller", ["Drama", "Krimi", "Thriller"]),
            ("  Komödie  ", ["Komödie"]),
            ("Hund und Katze", ["Hund", "Katze"]),
            ("Drama,, und Krimi", ["Drama", "Krimi"]),
            ("", []),
            (None, []),
        ],
    )
    def test_split(self, value, expected):
        assert parsers.split_names(value) == expected


class TestCastParsers:
    """Tests for directors, producers, adapters and actors."""

    def test_roles_are_split(self):
        item = _item()

        assert parsers.parse_directors(item) == ["Kaspar Heidelbach"]
        assert parsers.parse_producers(item) == ["Sonja Goslicki"]
        assert parsers.parse_adapters(item) == ["Stefan Cantz", "Jan Hinter"]
        assert parsers.parse_actors(item) == ["Axel Prahl", "Jan Josef Liefers", "Christine Urspruch"]

    @pytest.mark.parametrize("cast", [None, "not an object", [], {}])
    def test_missing_cast_yields_empty_lists(self, cast):
        raw = make_raw_item()
        if cast is None:
            del raw["cast"]
        else:
            raw["cast"] = cast
        item = RawListingItem.model_validate(raw)

        assert parsers.parse_directors(item) == []
        assert parsers.parse_producers(item) == []
        assert parsers.parse_adapters(item) == []
        assert parsers.parse_actors(item) == []

    def test_missing_single_role(self):
        item = _item(cast={"actor": "Axel Prahl"})

        assert parsers.parse_directors(item) == []
        assert parsers.parse_actors(item) == ["Axel Prahl"]


class TestCategory:
    """Tests for genre tokenization and the movie tag."""

    def test_series_genres(self):
        assert parsers.parse_category(_item()) == ["Drama", "Krimi"]

    def test_movie_tag_appended_for_movie_catalog_id(self):
        item = _item(externalIds=_external_ids(("gnProgram", "MV001122330000")))

        assert parsers.parse_category(item) == ["Drama", "Krimi", "movie"]

    def test_movie_tag_without_genres(self):
        raw = make_raw_item(externalIds=_external_ids(("gnProgram", "MV001122330000")))
        del raw["genres"]

        assert parsers.parse_category(RawListingItem.model_validate(raw)) == ["movie"]

    def test_movie_tag_when_any_catalog_id_is_a_movie(self):
        item = _item(externalIds=_external_ids(("gnProgram", "EP000111"), ("gnProgram", "MV000222")))

        assert parsers.parse_category(item) == ["Drama", "Krimi", "movie"]

    def test_movie_prefix_only_counts_for_program_catalog(self):
        item = _item(externalIds=_external_ids(("imdb", "MV123"), ("gnProgram", "SH0001")))

        assert "movie" not in parsers.parse_category(item)

    def test_missing_external_ids(self):
        raw = make_raw_item()
        del raw["externalIds"]

        assert parsers.parse_category(RawListingItem.model_validate(raw)) == ["Drama", "Krimi"]


class TestImages:
    """Tests for poster extraction and the icon."""

    def test_only_poster_types_with_https(self):
        images = parsers.parse_images(_item())

        assert images == [
            Image(type="poster", value="https://img.magentatv.de/17.jpg"),
            Image(type="poster", value="https://img.magentatv.de/18.jpg"),
        ]
        assert parsers.parse_icon(images) == "https://img.magentatv.de/17.jpg"

    @pytest.mark.parametrize("pictures", [None, "not a list", {"imageType": "17"}, []])
    def test_no_pictures_yields_none(self, pictures):
        images = parsers.parse_images(_item(pictures=pictures))

        assert images is None
        assert parsers.parse_icon(images) is None

    def test_no_accepted_types_yields_empty_list(self):
        images = parsers.parse_images(_item(pictures=[{"imageType": "1", "href": "http://x/1.jpg"}]))

        assert images == []
        assert parsers.parse_icon(images) is None

    def test_numeric_image_type_and_missing_href(self):
        images = parsers.parse_images(
            _item(pictures=[{"imageType": 18, "href": "http://x/a.jpg"}, {"imageType": "17"}])
        )

        assert images == [Image(type="poster", value="https://x/a.jpg")]


class TestUrls:
    def test_imdb_urls(self):
        item = _item(externalIds=_external_ids(("imdb", "tt1"), ("gnProgram", "EP1"), ("imdb", "tt2")))

        urls = parsers.parse_urls(item)

        assert [(url.system, url.value) for url in urls] == [
            ("imdb", "https://www.imdb.com/title/tt1"),
            ("imdb", "https://www.imdb.com/title/tt2"),
        ]

    def test_malformed_external_ids(self):
        assert parsers.parse_urls(_item(externalIds="{not json")) == []


class TestTimes:
    """Tests for start/stop parsing."""

    def test_start_and_stop_are_utc(self):
        item = _item()

        assert parsers.parse_start(item) == datetime(2024, 1, 10, 20, 15, tzinfo=timezone.utc)
        assert parsers.parse_stop(item) == datetime(2024, 1, 10, 21, 45, tzinfo=timezone.utc)

    def test_suffix_after_timestamp_is_ignored(self):
        item = _item(starttime="2024-01-10 20:15:00 UTC+00:00")

        assert parsers.parse_start(item) == datetime(2024, 1, 10, 20, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "10.01.2024 20:15", "garbage"])
    def test_malformed_times_yield_none(self, value):
        assert parsers.parse_start(_item(starttime=value)) is None


class TestScalars:
    def test_country_upper_cased(self):
        assert parsers.parse_country(_item(country="de")) == "DE"
        assert parsers.parse_country(_item(country=None)) is None

    @pytest.mark.parametrize(
        "value, expected",
        [("de,at", "DE AT"), ("  de / ch ", "DE CH"), ("Österreich", "ÖSTERREICH"), (", ", None)],
    )
    def test_country_separators_become_spaces(self, value, expected):
        assert parsers.parse_country(_item(country=value)) == expected

    def test_live_flag(self):
        assert parsers.parse_live(_item(isLive="1")) is True
        assert parsers.parse_live(_item(isLive="0")) is False
        assert parsers.parse_live(_item(isLive=None)) is False


class TestXmltvNs:
    @pytest.mark.parametrize(
        "season,episode,expected",
        [
            ("2", "5", "1.4"),
            ("1", "1", "0.0"),
            (None, "5", None),
            ("2", None, None),
            ("", "5", None),
            ("x", "5", None),
            ("0", "5", None),
        ],
    )
    def test_build(self, season, episode, expected):
        assert parsers.build_xmltv_ns(season, episode) == expected
