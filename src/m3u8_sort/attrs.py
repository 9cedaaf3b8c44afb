from __future__ import annotations
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from .errors import MalformedAttributeList

_RESOLUTION_RE = re.compile(r"^(\d+)x(\d+)$")
_INTEGER_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d*$")


@dataclass(frozen=True)
class AttributeValue(ABC):
    """
    Right-hand side of a NAME=value pair.

    `raw` is the value exactly as it appeared (without the quotes for
    QuotedString), so untouched attributes are written back unchanged.
    """
    raw: str

    @abstractmethod
    def sort_key(self) -> Tuple[int, Union[int, float, str]]:
        ...

    def render(self) -> str:
        return self.raw


@dataclass(frozen=True)
class IntegerValue(AttributeValue):
    value: int = 0

    def sort_key(self):
        return (0, self.value)


@dataclass(frozen=True)
class FloatValue(AttributeValue):
    value: float = 0.0

    def sort_key(self):
        return (0, self.value)


@dataclass(frozen=True)
class Resolution(AttributeValue):
    width: int = 0
    height: int = 0

    @property
    def area(self) -> int:
        return self.width * self.height

    def sort_key(self):
        return (0, self.area)


@dataclass(frozen=True)
class QuotedString(AttributeValue):

    def sort_key(self):
        return (1, self.raw)

    def render(self) -> str:
        return f'"{self.raw}"'


@dataclass(frozen=True)
class Token(AttributeValue):

    def sort_key(self):
        return (1, self.raw)


AttributeMap = Dict[str, AttributeValue]


def classify_value(text: str) -> AttributeValue:
    """
    Pick the variant from the surface form of an (already trimmed) value.
    """
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return QuotedString(text[1:-1])

    # 0x-prefixed hexadecimal sequences are tokens, not WIDTHxHEIGHT
    m = None if text.startswith("0x") else _RESOLUTION_RE.match(text)
    if m:
        return Resolution(text, width=int(m.group(1)), height=int(m.group(2)))

    if _INTEGER_RE.match(text):
        return IntegerValue(text, value=int(text))

    if _FLOAT_RE.match(text):
        return FloatValue(text, value=float(text))

    return Token(text)


def _split_segments(attr_str: str) -> list[str]:
    """
    Split at commas that are not inside a quoted string.
    """
    segments: list[str] = []
    buf: list[str] = []
    in_quotes = False

    for ch in attr_str:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == "," and not in_quotes:
            segments.append("".join(buf))
            buf = []
            continue
        buf.append(ch)

    if in_quotes:
        raise MalformedAttributeList("unterminated quoted string")

    segments.append("".join(buf))
    return segments


def _parse_segment(segment: str) -> tuple[str, AttributeValue]:
    if "=" not in segment:
        raise MalformedAttributeList(f"attribute without '=': {segment.strip()!r}")

    name, _, value = segment.partition("=")
    name = name.strip()
    value = value.strip()

    if not name:
        raise MalformedAttributeList(f"attribute without a name: {segment.strip()!r}")
    if not value:
        raise MalformedAttributeList(f"attribute {name} has no value")

    if value.startswith('"'):
        # the closing quote must end the value
        closing = value.find('"', 1)
        if closing != len(value) - 1:
            raise MalformedAttributeList(f"unexpected text after quoted value of {name}")

    return name, classify_value(value)


def parse_attribute_list(attr_str: str) -> AttributeMap:
    """
    Parse NAME=value pairs of a tag's attribute list, e.g. the part after
    '#EXT-X-STREAM-INF:'.

    Commas inside quoted strings belong to the value. A repeated name keeps
    its first position and takes the last value.
    """
    if not attr_str or not attr_str.strip():
        raise MalformedAttributeList("empty attribute list")

    attrs: AttributeMap = {}
    for segment in _split_segments(attr_str):
        name, value = _parse_segment(segment)
        attrs[name] = value
    return attrs


def format_attribute_list(attrs: AttributeMap) -> str:
    return ",".join(f"{name}={value.render()}" for name, value in attrs.items())
