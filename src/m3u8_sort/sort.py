from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from .attrs import AttributeValue, Token
from .model import MasterPlaylist, StreamEntry

logger = logging.getLogger(__name__)

Extractor = Callable[[object], Optional[AttributeValue]]


class SortStreamBy(Enum):
    BANDWIDTH = "bandwidth"
    AVERAGE_BANDWIDTH = "average-bandwidth"
    CODECS = "codecs"
    RESOLUTION = "resolution"
    FRAME_RATE = "frame-rate"
    VIDEO_RANGE = "video-range"
    AUDIO = "audio"
    CLOSED_CAPTIONS = "closed-captions"
    URI = "uri"


class SortMediaBy(Enum):
    TYPE = "type"
    GROUP_ID = "group-id"
    NAME = "name"
    LANGUAGE = "language"
    DEFAULT = "default"
    AUTO_SELECT = "auto-select"
    CHANNELS = "channels"
    URI = "uri"


class SortIFrameBy(Enum):
    BANDWIDTH = "bandwidth"
    CODECS = "codecs"
    RESOLUTION = "resolution"
    VIDEO_RANGE = "video-range"
    URI = "uri"


SortField = Union[SortStreamBy, SortMediaBy, SortIFrameBy]
F = TypeVar("F", SortStreamBy, SortMediaBy, SortIFrameBy)

# Field identifier -> attribute name. AUTOSELECT is spelled without the dash in the tag.
_ATTRIBUTE_NAMES = {
    "bandwidth": "BANDWIDTH",
    "average-bandwidth": "AVERAGE-BANDWIDTH",
    "codecs": "CODECS",
    "resolution": "RESOLUTION",
    "frame-rate": "FRAME-RATE",
    "video-range": "VIDEO-RANGE",
    "audio": "AUDIO",
    "closed-captions": "CLOSED-CAPTIONS",
    "type": "TYPE",
    "group-id": "GROUP-ID",
    "name": "NAME",
    "language": "LANGUAGE",
    "default": "DEFAULT",
    "auto-select": "AUTOSELECT",
    "channels": "CHANNELS",
    "uri": "URI",
}

DEFAULT_STREAM_SORT = (SortStreamBy.BANDWIDTH, SortStreamBy.BANDWIDTH)
DEFAULT_MEDIA_SORT = (SortMediaBy.GROUP_ID, SortMediaBy.GROUP_ID)
DEFAULT_IFRAME_SORT = (SortIFrameBy.BANDWIDTH, SortIFrameBy.BANDWIDTH)


def _stream_uri(entry: StreamEntry) -> Optional[AttributeValue]:
    return Token(entry.uri) if entry.uri else None


def resolve(field: SortField) -> Extractor:
    """
    Return a function pulling the value of `field` out of an entry, or None
    when the entry does not carry it.
    """
    if isinstance(field, SortStreamBy) and field is SortStreamBy.URI:
        return _stream_uri

    name = _ATTRIBUTE_NAMES[field.value]

    def extract(entry) -> Optional[AttributeValue]:
        return entry.attributes.get(name)

    return extract


def _entry_key(entry, extractors: Sequence[Extractor]) -> tuple:
    key: list = []
    for extract in extractors:
        value = extract(entry)
        if value is None:
            # missing values go last and tie with each other
            key.append((1, (0, 0)))
        else:
            key.append((0, value.sort_key()))
    key.append(entry.position)
    return tuple(key)


def sort_entries(entries: Iterable, extractors: Sequence[Extractor]) -> list:
    """
    Order entries ascending by each extractor in turn, then by their original
    position in the file. Entries are never modified.
    """
    return sorted(entries, key=lambda e: _entry_key(e, extractors))


def _coerce(field_enum: Type[F], field: Union[F, str]) -> F:
    if isinstance(field, field_enum):
        return field
    return field_enum(field)


def _extractors(field_enum: Type[F], primary, secondary) -> List[Extractor]:
    fields = [_coerce(field_enum, primary)]
    if secondary is not None:
        fields.append(_coerce(field_enum, secondary))
    return [resolve(f) for f in fields]


def sort_streams(playlist: MasterPlaylist, primary: Union[SortStreamBy, str],
                 secondary: Union[SortStreamBy, str, None] = None) -> None:
    logger.debug("sorting %d streams by %s, %s", len(playlist.streams), primary, secondary)
    playlist.streams[:] = sort_entries(playlist.streams, _extractors(SortStreamBy, primary, secondary))


def sort_media(playlist: MasterPlaylist, primary: Union[SortMediaBy, str],
               secondary: Union[SortMediaBy, str, None] = None) -> None:
    logger.debug("sorting %d media by %s, %s", len(playlist.media), primary, secondary)
    playlist.media[:] = sort_entries(playlist.media, _extractors(SortMediaBy, primary, secondary))


def sort_iframes(playlist: MasterPlaylist, primary: Union[SortIFrameBy, str],
                 secondary: Union[SortIFrameBy, str, None] = None) -> None:
    logger.debug("sorting %d i-frame streams by %s, %s", len(playlist.iframes), primary, secondary)
    playlist.iframes[:] = sort_entries(playlist.iframes, _extractors(SortIFrameBy, primary, secondary))


def parse_sort_order(text: str, field_enum: Type[F]) -> Tuple[F, F]:
    """
    'primary[,secondary]' -> (primary, secondary). Without a secondary the
    primary is used twice.
    """
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if not parts or len(parts) > 2:
        raise ValueError(f"expected 'primary[,secondary]', got {text!r}")

    fields = []
    for p in parts:
        try:
            fields.append(field_enum(p.lower()))
        except ValueError:
            choices = ", ".join(f.value for f in field_enum)
            raise ValueError(f"unknown sort field {p!r} (choose from {choices})") from None

    primary = fields[0]
    secondary = fields[1] if len(fields) > 1 else primary
    return primary, secondary
