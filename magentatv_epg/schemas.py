import json
import logging
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


logger = logging.getLogger(__name__)


class ExternalId(BaseModel):
    """Third-party catalog identifier attached to a listing item"""
    type: str = Field(..., description="Catalog type, e.g. 'gnProgram' or 'imdb'")
    id: str = Field(..., description="Identifier within that catalog")


class Cast(BaseModel):
    """Delimited cast strings as delivered by MagentaTV"""
    model_config = ConfigDict(extra="ignore")

    director: str | None = None
    producer: str | None = None
    adaptor: str | None = None
    actor: str | None = None

    @field_validator("director", "producer", "adaptor", "actor", mode="before")
    @classmethod
    def drop_non_strings(cls, v: Any) -> str | None:
        """Ignore role values that are not strings"""
        return v if isinstance(v, str) else None


class RawListingItem(BaseModel):
    """
    One entry of the PlayBillList `playbilllist` array.

    Every field is optional. `externalIds` arrives as a JSON-encoded string
    and is decoded here once into `external_ids`.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = None
    name: str | None = None
    introduce: str | None = None
    sub_name: str | None = Field(None, alias="subName")
    season_num: str | None = Field(None, alias="seasonNum")
    sub_num: str | None = Field(None, alias="subNum")
    starttime: str | None = None
    endtime: str | None = None
    genres: str | None = None
    cast: Cast | None = None
    country: str | None = None
    producedate: str | None = None
    is_live: str | None = Field(None, alias="isLive")
    pictures: Any = None
    external_ids: list[ExternalId] = Field(default_factory=list, alias="externalIds")

    @field_validator(
        "id", "name", "introduce", "sub_name", "season_num", "sub_num",
        "starttime", "endtime", "genres", "country", "producedate", "is_live",
        mode="before",
    )
    @classmethod
    def coerce_scalar(cls, v: Any) -> str | None:
        """Accept numbers where strings are expected, drop anything else"""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    @field_validator("cast", mode="before")
    @classmethod
    def drop_malformed_cast(cls, v: Any) -> Any:
        """Only objects are valid cast values"""
        return v if isinstance(v, dict) else None

    @field_validator("external_ids", mode="before")
    @classmethod
    def decode_external_ids(cls, v: Any) -> list[dict]:
        """Decode the JSON string of external ids, keeping entries with an id"""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                logger.debug("Could not decode externalIds: %r", v[:100])
                return []
        if not isinstance(v, list):
            return []

        decoded = []
        for entry in v:
            if not isinstance(entry, dict):
                continue
            id_type, id_value = entry.get("type"), entry.get("id")
            if isinstance(id_type, str) and isinstance(id_value, (str, int)) and id_value != "":
                decoded.append({"type": id_type, "id": str(id_value)})
        return decoded

    def external_ids_of(self, id_type: str) -> list[ExternalId]:
        """Return decoded external ids of the given catalog type"""
        return [external_id for external_id in self.external_ids if external_id.type == id_type]


class Image(BaseModel):
    """Program image"""
    type: Literal["poster"] = "poster"
    value: str = Field(..., description="HTTPS image URL")


class ProgramUrl(BaseModel):
    """Link to an external catalog page"""
    system: str
    value: str


class EpisodeNumber(BaseModel):
    """Episode numbering entry; value is None when the datum was unavailable"""
    system: Literal["xmltv_ns", "imdb.com", "themoviedb.org"]
    value: str | None = None


class ProgramRecord(BaseModel):
    """Normalized program"""
    title: str | None = Field(None, description="Program title")
    description: str | None = Field(None, description="Program description")
    images: list[Image] | None = Field(None, description="Posters, None when the item had no pictures")
    category: list[str] = Field(default_factory=list)
    start: datetime = Field(..., description="UTC start time")
    stop: datetime = Field(..., description="UTC stop time")
    sub_title: str | None = None
    season: str | None = None
    episode: str | None = None
    directors: list[str] = Field(default_factory=list)
    producers: list[str] = Field(default_factory=list)
    adapters: list[str] = Field(default_factory=list)
    actors: list[str] = Field(default_factory=list)
    country: str | None = None
    date: str | None = Field(None, description="Production date as delivered")
    live: bool = False
    urls: list[ProgramUrl] = Field(default_factory=list)
    episode_numbers: list[EpisodeNumber] = Field(default_factory=list)
    icon: str | None = None


class ChannelRecord(BaseModel):
    """Channel catalog entry"""
    lang: str = "de"
    site_id: str
    name: str


class ChannelsResponse(BaseModel):
    """Channel list response"""
    timestamp: str
    total_channels: int
    channels: list[ChannelRecord]


class ProgramsResponse(BaseModel):
    """Programs of one channel"""
    timestamp: str
    channel_id: str
    from_date: date
    days: int
    total_programs: int
    programs: list[ProgramRecord]


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'UPSTREAM_ERROR', 'VALIDATION_ERROR')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")
