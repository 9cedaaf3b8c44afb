from __future__ import annotations
from typing import Optional


class PlaylistError(Exception):
    """Base class for everything that can go wrong fetching, parsing or writing a playlist."""


class FetchError(PlaylistError):
    pass


class NotAMasterPlaylist(PlaylistError):
    pass


class MalformedAttributeList(PlaylistError):
    def __init__(self, message: str, line: Optional[str] = None, lineno: Optional[int] = None):
        self.message = message
        self.line = line
        self.lineno = lineno
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        return f"line {self.lineno}: {self.message}: {self.line}"


class DanglingStreamTag(PlaylistError):
    def __init__(self, message: str, lineno: Optional[int] = None):
        self.message = message
        self.lineno = lineno
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        return f"line {self.lineno}: {self.message}"


class SerializationError(PlaylistError):
    pass
