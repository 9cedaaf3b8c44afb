from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .attrs import AttributeMap, AttributeValue


class EntryKind(Enum):
    STREAM = "#EXT-X-STREAM-INF"
    MEDIA = "#EXT-X-MEDIA"
    IFRAME = "#EXT-X-I-FRAME-STREAM-INF"

    @property
    def prefix(self) -> str:
        return self.value + ":"


@dataclass
class _Entry:
    attributes: AttributeMap
    position: int = 0  # file order among entries of the same kind

    def get(self, name: str) -> Optional[AttributeValue]:
        return self.attributes.get(name)


@dataclass
class StreamEntry(_Entry):
    """#EXT-X-STREAM-INF plus the URI line that follows it."""
    uri: str = ""
    kind = EntryKind.STREAM


@dataclass
class MediaEntry(_Entry):
    kind = EntryKind.MEDIA


@dataclass
class IFrameStreamEntry(_Entry):
    kind = EntryKind.IFRAME

    @property
    def uri(self) -> Optional[str]:
        value = self.get("URI")
        return value.raw if value is not None else None


Entry = Union[StreamEntry, MediaEntry, IFrameStreamEntry]
LayoutItem = Union[str, EntryKind]


@dataclass
class MasterPlaylist:
    """
    Variant streams, renditions and I-frame streams of a master playlist.

    `layout` keeps the file order: verbatim lines as str, and one EntryKind
    slot where each entry appeared. Sorting permutes the entry lists only;
    the serializer fills the slots of a kind with that kind's entries in
    list order.
    """
    streams: List[StreamEntry] = field(default_factory=list)
    media: List[MediaEntry] = field(default_factory=list)
    iframes: List[IFrameStreamEntry] = field(default_factory=list)
    layout: List[LayoutItem] = field(default_factory=list)

    @property
    def other_lines(self) -> List[str]:
        return [item for item in self.layout if isinstance(item, str)]

    def entries(self, kind: EntryKind) -> list:
        if kind is EntryKind.STREAM:
            return self.streams
        if kind is EntryKind.MEDIA:
            return self.media
        return self.iframes
