from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .attrs import AttributeMap, parse_attribute_list
from .errors import DanglingStreamTag, MalformedAttributeList, NotAMasterPlaylist
from .model import EntryKind, IFrameStreamEntry, MasterPlaylist, MediaEntry, StreamEntry

logger = logging.getLogger(__name__)


@dataclass
class _Idle:
    pass


@dataclass
class _AwaitingUri:
    attributes: AttributeMap
    lineno: int


_State = Union[_Idle, _AwaitingUri]


def _is_tag(line: str) -> bool:
    return line.startswith("#EXT")


def _is_comment(line: str) -> bool:
    return line.startswith("#") and not _is_tag(line)


def _attributes(line: str, kind: EntryKind, lineno: int) -> AttributeMap:
    try:
        return parse_attribute_list(line[len(kind.prefix):])
    except MalformedAttributeList as e:
        raise MalformedAttributeList(e.message, line=line, lineno=lineno) from e


def _split_lines(text: str) -> list[str]:
    """
    Lines end with LF or CRLF only; other Unicode line breaks may sit inside
    quoted attribute values.
    """
    lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _check_header(lines: list[str]) -> None:
    for line in lines:
        if not line.strip():
            continue
        if line.strip().startswith("#EXTM3U"):
            return
        break
    raise NotAMasterPlaylist("playlist does not start with #EXTM3U")


def parse(text: str) -> MasterPlaylist:
    """
    Parse master playlist text.

    #EXT-X-STREAM-INF waits for the next non-blank, non-comment line as its
    URI; #EXT-X-MEDIA and #EXT-X-I-FRAME-STREAM-INF are complete on their own
    line. Every other line is kept verbatim in the playlist layout.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = _split_lines(text)
    _check_header(lines)

    playlist = MasterPlaylist()
    state: _State = _Idle()

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()

        if isinstance(state, _AwaitingUri):
            if not line or _is_comment(line):
                playlist.layout.append(raw)
                continue
            if _is_tag(line):
                raise DanglingStreamTag(
                    f"#EXT-X-STREAM-INF from line {state.lineno} has no URI line before {line.split(':', 1)[0]}",
                    lineno=state.lineno,
                )
            playlist.streams.append(
                StreamEntry(state.attributes, position=len(playlist.streams), uri=line)
            )
            playlist.layout.append(EntryKind.STREAM)
            state = _Idle()
            continue

        if line.startswith(EntryKind.STREAM.prefix):
            state = _AwaitingUri(_attributes(line, EntryKind.STREAM, lineno), lineno)
            continue

        if line.startswith(EntryKind.MEDIA.prefix):
            attrs = _attributes(line, EntryKind.MEDIA, lineno)
            playlist.media.append(MediaEntry(attrs, position=len(playlist.media)))
            playlist.layout.append(EntryKind.MEDIA)
            continue

        if line.startswith(EntryKind.IFRAME.prefix):
            attrs = _attributes(line, EntryKind.IFRAME, lineno)
            if "URI" not in attrs:
                raise DanglingStreamTag("#EXT-X-I-FRAME-STREAM-INF without a URI attribute", lineno=lineno)
            playlist.iframes.append(IFrameStreamEntry(attrs, position=len(playlist.iframes)))
            playlist.layout.append(EntryKind.IFRAME)
            continue

        playlist.layout.append(raw)

    if isinstance(state, _AwaitingUri):
        raise DanglingStreamTag(
            f"#EXT-X-STREAM-INF from line {state.lineno} has no URI line before end of playlist",
            lineno=state.lineno,
        )

    logger.debug(
        "parsed %d streams, %d media, %d i-frame streams",
        len(playlist.streams), len(playlist.media), len(playlist.iframes),
    )
    return playlist


def read_m3u8(path: Path) -> MasterPlaylist:
    with path.open("r", encoding="utf-8") as f:
        return parse(f.read())
