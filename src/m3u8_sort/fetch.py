from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import requests
import yaml

from .errors import FetchError
from .model import MasterPlaylist
from .parse_m3u8 import parse
from .sort import (
    DEFAULT_IFRAME_SORT,
    DEFAULT_MEDIA_SORT,
    DEFAULT_STREAM_SORT,
    SortIFrameBy,
    SortMediaBy,
    SortStreamBy,
    parse_sort_order,
)

DEFAULT_CONFIG_PATH = Path("m3u8_sort.yml")


@dataclass
class FetchSettings:
    timeout_secs: int = 20
    retries: int = 3
    backoff: float = 1.5
    headers: Dict[str, str] = field(default_factory=dict)
    auth: Optional[Dict[str, str]] = None  # {type: 'basic', user: '...', pass: '...'}


@dataclass
class SortDefaults:
    stream: Tuple[SortStreamBy, SortStreamBy] = DEFAULT_STREAM_SORT
    media: Tuple[SortMediaBy, SortMediaBy] = DEFAULT_MEDIA_SORT
    iframe: Tuple[SortIFrameBy, SortIFrameBy] = DEFAULT_IFRAME_SORT


@dataclass
class SorterConfig:
    fetch: FetchSettings = field(default_factory=FetchSettings)
    sort: SortDefaults = field(default_factory=SortDefaults)


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _require_mapping(section, name: str) -> None:
    if not isinstance(section, dict):
        raise ValueError(f"{name} must be a mapping, got {type(section).__name__}")


def load_config(config_path: Optional[Path]) -> SorterConfig:
    """
    Read the YAML config. A missing file gives the built-in defaults.
    """
    if config_path is None or not config_path.exists():
        return SorterConfig()

    raw = _load_yaml(config_path)
    _require_mapping(raw, str(config_path))

    fetch = raw.get("fetch", {}) or {}
    _require_mapping(fetch, "fetch")
    _require_mapping(fetch.get("headers") or {}, "fetch.headers")
    _require_mapping(fetch.get("auth") or {}, "fetch.auth")
    settings = FetchSettings(
        timeout_secs=int(fetch.get("timeout_secs", 20)),
        retries=int(fetch.get("retries", 3)),
        backoff=float(fetch.get("backoff", 1.5)),
        headers={str(k): str(v) for k, v in (fetch.get("headers") or {}).items()},
        auth=fetch.get("auth"),
    )

    sort = raw.get("sort", {}) or {}
    _require_mapping(sort, "sort")
    defaults = SortDefaults()
    if sort.get("stream"):
        defaults.stream = parse_sort_order(str(sort["stream"]), SortStreamBy)
    if sort.get("media"):
        defaults.media = parse_sort_order(str(sort["media"]), SortMediaBy)
    if sort.get("iframe"):
        defaults.iframe = parse_sort_order(str(sort["iframe"]), SortIFrameBy)

    return SorterConfig(fetch=settings, sort=defaults)


def _auth_tuple(auth: Optional[Dict[str, str]]):
    if not auth:
        return None
    if auth.get("type", "").lower() == "basic":
        return (auth.get("user", ""), auth.get("pass", ""))
    return None


def _is_url(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


def _decode(content: bytes, source) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FetchError(f"{source} is not UTF-8: {e}") from e


def fetch_url(url: str, settings: FetchSettings, logger: logging.Logger) -> str:
    attempt = 0
    last_error = None
    while attempt <= settings.retries:
        try:
            resp = requests.get(
                url,
                headers=dict(settings.headers or {}),
                auth=_auth_tuple(settings.auth),
                timeout=settings.timeout_secs,
            )
            if 200 <= resp.status_code < 300:
                logger.info("%s OK (%s bytes): %s", resp.status_code, len(resp.content), url)
                return _decode(resp.content, url)

            last_error = f"HTTP {resp.status_code}"
            logger.warning("HTTP %s for %s", resp.status_code, url)

        except requests.RequestException as e:
            last_error = str(e)
            logger.warning("Network error on %s (attempt %d/%d): %s", url, attempt + 1, settings.retries + 1, e)

        attempt += 1
        if attempt <= settings.retries:
            time.sleep(settings.backoff ** attempt)

    logger.error("Fetch failed for %s. Last error: %s", url, last_error)
    raise FetchError(f"failed to fetch {url}: {last_error}")


def read_file(path: Path, logger: logging.Logger) -> str:
    logger.info("Reading local file: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FetchError(f"failed to read {path}: {e}") from e


def fetch_text(location: str, settings: FetchSettings, logger: logging.Logger) -> str:
    if _is_url(location):
        return fetch_url(location, settings, logger)
    path = Path(location)
    if path.is_file():
        return read_file(path, logger)
    raise FetchError(f"invalid location {location!r}: not an http(s) URL or an existing file")


def fetch_playlist(
    location: str,
    settings: Optional[FetchSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> MasterPlaylist:
    logger = logger or logging.getLogger("m3u8_sort.fetch")
    logger.info("Fetching playlist from %s", location)
    text = fetch_text(location, settings or FetchSettings(), logger)
    return parse(text)
