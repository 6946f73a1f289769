"""
Field parsers

Pure functions mapping one RawListingItem to one ProgramRecord attribute.
None of them raise on absent or malformed input: absence maps to an empty
list or None depending on the field.
"""
import re
from datetime import datetime

from magentatv_epg.schemas import Image, ProgramUrl, RawListingItem
from magentatv_epg.utils.timezone import parse_upstream_timestamp


PROGRAM_CATALOG_TYPE = "gnProgram"
IMDB_TYPE = "imdb"
MOVIE_ID_PREFIX = "MV"
POSTER_IMAGE_TYPES = frozenset({"17", "18"})  # 17: widescreen poster, 18: poster with title
IMDB_TITLE_URL = "https://www.imdb.com/title/{}"

# Names are separated by commas, semicolons or the German "und"
_NAME_DELIMITER = re.compile(r"\s*(?:[,;]|\bund\b)\s*")
_COUNTRY_WORD = re.compile(r"[^\W_]+")


def split_names(value: str | None) -> list[str]:
    """Split a delimited name/genre string into trimmed, non-empty tokens"""
    if not value or not isinstance(value, str):
        return []
    return [token.strip() for token in _NAME_DELIMITER.split(value) if token.strip()]


def is_movie(item: RawListingItem) -> bool:
    """True if any program catalog id marks the item as a movie"""
    return any(
        external_id.id.startswith(MOVIE_ID_PREFIX)
        for external_id in item.external_ids_of(PROGRAM_CATALOG_TYPE)
    )


def parse_category(item: RawListingItem) -> list[str]:
    genres = split_names(item.genres)
    if is_movie(item):
        genres.append("movie")
    return genres


def parse_directors(item: RawListingItem) -> list[str]:
    return split_names(item.cast.director) if item.cast else []


def parse_producers(item: RawListingItem) -> list[str]:
    return split_names(item.cast.producer) if item.cast else []


def parse_adapters(item: RawListingItem) -> list[str]:
    return split_names(item.cast.adaptor) if item.cast else []


def parse_actors(item: RawListingItem) -> list[str]:
    # TODO: resolve character roles once fclist (castCode -> actorID) is requested
    return split_names(item.cast.actor) if item.cast else []


def parse_images(item: RawListingItem) -> list[Image] | None:
    """
    Extract poster images

    Returns:
        None if the item has no pictures at all, otherwise the posters of the
        accepted image types (possibly an empty list) with https URLs
    """
    pictures = item.pictures
    if not isinstance(pictures, list) or not pictures:
        return None

    images = []
    for picture in pictures:
        if not isinstance(picture, dict):
            continue
        href = picture.get("href")
        if str(picture.get("imageType")) not in POSTER_IMAGE_TYPES or not isinstance(href, str):
            continue
        images.append(Image(type="poster", value=href.replace("http://", "https://", 1)))
    return images


def parse_icon(images: list[Image] | None) -> str | None:
    return images[0].value if images else None


def parse_urls(item: RawListingItem) -> list[ProgramUrl]:
    return [
        ProgramUrl(system="imdb", value=IMDB_TITLE_URL.format(external_id.id))
        for external_id in item.external_ids_of(IMDB_TYPE)
    ]


def parse_start(item: RawListingItem) -> datetime | None:
    return parse_upstream_timestamp(item.starttime)


def parse_stop(item: RawListingItem) -> datetime | None:
    return parse_upstream_timestamp(item.endtime)


def parse_country(item: RawListingItem) -> str | None:
    """Upper-case the country words, separators become single spaces ("de,at" -> "DE AT")"""
    words = _COUNTRY_WORD.findall(item.country or "")
    return " ".join(words).upper() if words else None


def parse_live(item: RawListingItem) -> bool:
    return item.is_live == "1"


def _positive_int(value: str | None) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def build_xmltv_ns(season: str | None, episode: str | None) -> str | None:
    """
    Build the zero-based xmltv_ns episode number

    Args:
        season: One-based season number as delivered ('2')
        episode: One-based episode number as delivered ('5')

    Returns:
        '1.4' for the example above, None unless both are positive integers
    """
    season_number = _positive_int(season)
    episode_number = _positive_int(episode)
    if season_number is None or episode_number is None:
        return None
    return f"{season_number - 1}.{episode_number - 1}"
