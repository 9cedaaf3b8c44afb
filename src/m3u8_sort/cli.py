from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .errors import PlaylistError
from .fetch import DEFAULT_CONFIG_PATH, fetch_playlist, load_config
from .serialize import serialize
from .sort import SortIFrameBy, SortMediaBy, SortStreamBy, parse_sort_order, sort_iframes, sort_media, sort_streams


def _sort_option(field_enum):
    def convert(text: str):
        try:
            return parse_sort_order(text, field_enum)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e))
    convert.__name__ = field_enum.__name__
    return convert


def _setup_logging(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("m3u8_sort")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    if not logger.handlers:
        logger.addHandler(ch)
    return logger


def _parse_args(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(prog="m3u8-sort", description="Sort an HLS master playlist from a URL or file")
    ap.add_argument(
        "location",
        help="playlist location: a file path or an http(s) URL",
    )
    ap.add_argument(
        "--sort-stream-by", "-s", type=_sort_option(SortStreamBy), default=None,
        metavar="PRIMARY[,SECONDARY]",
        help="sort #EXT-X-STREAM-INF by: " + ", ".join(f.value for f in SortStreamBy),
    )
    ap.add_argument(
        "--sort-media-by", "-m", type=_sort_option(SortMediaBy), default=None,
        metavar="PRIMARY[,SECONDARY]",
        help="sort #EXT-X-MEDIA by: " + ", ".join(f.value for f in SortMediaBy),
    )
    ap.add_argument(
        "--sort-iframe-by", "-i", type=_sort_option(SortIFrameBy), default=None,
        metavar="PRIMARY[,SECONDARY]",
        help="sort #EXT-X-I-FRAME-STREAM-INF by: " + ", ".join(f.value for f in SortIFrameBy),
    )
    ap.add_argument("--config", "-c", type=Path, default=DEFAULT_CONFIG_PATH)
    ap.add_argument("--output", "-o", type=Path, default=None, help="write here instead of stdout")
    ap.add_argument("--verbose", "-v", action="store_true")
    return ap.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logger = _setup_logging(args.verbose)

    try:
        cfg = load_config(args.config)
    except (yaml.YAMLError, ValueError, OSError) as e:
        logger.error("config error in %s: %s", args.config, e)
        return 1

    try:
        playlist = fetch_playlist(args.location, cfg.fetch, logger.getChild("fetch"))

        sort_streams(playlist, *(args.sort_stream_by or cfg.sort.stream))
        sort_media(playlist, *(args.sort_media_by or cfg.sort.media))
        sort_iframes(playlist, *(args.sort_iframe_by or cfg.sort.iframe))

        text = serialize(playlist)
    except PlaylistError as e:
        logger.error("%s: %s", e.__class__.__name__, e)
        return 1

    if args.output:
        try:
            args.output.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error("cannot write %s: %s", args.output, e)
            return 1
        logger.info("wrote: %s", args.output)
    else:
        sys.stdout.write(text)
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
