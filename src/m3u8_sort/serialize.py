from __future__ import annotations
from typing import Dict, Iterator, List, TextIO

from .attrs import format_attribute_list
from .errors import SerializationError
from .model import EntryKind, MasterPlaylist, StreamEntry


def _entry_lines(entry) -> List[str]:
    if not entry.attributes:
        raise SerializationError(f"{entry.kind.value} entry {entry.position} has no attributes")

    lines = [entry.kind.prefix + format_attribute_list(entry.attributes)]
    if isinstance(entry, StreamEntry):
        if not entry.uri:
            raise SerializationError(f"{entry.kind.value} entry {entry.position} has no URI")
        lines.append(entry.uri)
    return lines


def serialize(playlist: MasterPlaylist) -> str:
    """
    Render the playlist. Verbatim lines keep their place; each entry slot is
    filled with the next entry of that kind in current list order.
    """
    remaining: Dict[EntryKind, Iterator] = {kind: iter(playlist.entries(kind)) for kind in EntryKind}
    out: List[str] = []

    for item in playlist.layout:
        if isinstance(item, EntryKind):
            entry = next(remaining[item], None)
            if entry is not None:
                out.extend(_entry_lines(entry))
        else:
            out.append(item)

    # entries added after parsing have no slot of their own
    for kind in (EntryKind.MEDIA, EntryKind.STREAM, EntryKind.IFRAME):
        for entry in remaining[kind]:
            out.extend(_entry_lines(entry))

    return "\n".join(out) + "\n"


def write_m3u8(playlist: MasterPlaylist, f: TextIO) -> None:
    f.write(serialize(playlist))
