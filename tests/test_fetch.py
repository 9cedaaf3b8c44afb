import logging

import pytest
import requests

from m3u8_sort import fetch
from m3u8_sort.errors import FetchError, NotAMasterPlaylist
from m3u8_sort.fetch import FetchSettings, fetch_playlist, fetch_text, load_config
from m3u8_sort.sort import SortIFrameBy, SortMediaBy, SortStreamBy

logger = logging.getLogger("m3u8_sort.tests")


class _Response:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(fetch.time, "sleep", lambda s: None)


def test_fetch_local_file(data_dir):
    playlist = fetch_playlist(str(data_dir / "master.m3u8"))
    assert len(playlist.streams) == 3


def test_invalid_location():
    with pytest.raises(FetchError):
        fetch_text("no/such/playlist.m3u8", FetchSettings(), logger)


def test_url_retries_then_succeeds(monkeypatch, master_text):
    calls = []

    def fake_get(url, headers=None, auth=None, timeout=None):
        calls.append((url, headers, auth, timeout))
        if len(calls) == 1:
            raise requests.ConnectionError("boom")
        if len(calls) == 2:
            return _Response(503)
        return _Response(200, master_text)

    monkeypatch.setattr(fetch.requests, "get", fake_get)
    settings = FetchSettings(timeout_secs=5, retries=3, headers={"User-Agent": "t"},
                             auth={"type": "basic", "user": "u", "pass": "p"})

    playlist = fetch_playlist("https://example.com/master.m3u8", settings)

    assert len(calls) == 3
    assert calls[0] == ("https://example.com/master.m3u8", {"User-Agent": "t"}, ("u", "p"), 5)
    assert len(playlist.iframes) == 3


def test_url_gives_up_after_retries(monkeypatch):
    calls = []

    def fake_get(url, headers=None, auth=None, timeout=None):
        calls.append(url)
        return _Response(404)

    monkeypatch.setattr(fetch.requests, "get", fake_get)

    with pytest.raises(FetchError) as exc:
        fetch_text("http://example.com/x.m3u8", FetchSettings(retries=2), logger)
    assert len(calls) == 3
    assert "HTTP 404" in str(exc.value)


def test_fetched_media_playlist_is_rejected(monkeypatch):
    monkeypatch.setattr(fetch.requests, "get", lambda *a, **kw: _Response(200, "not a playlist\n"))
    with pytest.raises(NotAMasterPlaylist):
        fetch_playlist("http://example.com/x.m3u8")


def test_load_config_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "absent.yml")
    assert cfg.fetch.retries == 3
    assert cfg.sort.stream == (SortStreamBy.BANDWIDTH, SortStreamBy.BANDWIDTH)
    assert cfg.sort.media == (SortMediaBy.GROUP_ID, SortMediaBy.GROUP_ID)


def test_load_config(tmp_path):
    path = tmp_path / "m3u8_sort.yml"
    path.write_text(
        "fetch:\n"
        "  timeout_secs: 7\n"
        "  retries: 1\n"
        "  headers:\n"
        "    User-Agent: m3u8-sort\n"
        "sort:\n"
        "  stream: resolution,average-bandwidth\n"
        "  iframe: uri\n",
        encoding="utf-8",
    )
    cfg = load_config(path)

    assert cfg.fetch.timeout_secs == 7
    assert cfg.fetch.retries == 1
    assert cfg.fetch.headers == {"User-Agent": "m3u8-sort"}
    assert cfg.sort.stream == (SortStreamBy.RESOLUTION, SortStreamBy.AVERAGE_BANDWIDTH)
    assert cfg.sort.media == (SortMediaBy.GROUP_ID, SortMediaBy.GROUP_ID)
    assert cfg.sort.iframe == (SortIFrameBy.URI, SortIFrameBy.URI)


def test_load_config_bad_sort_field(tmp_path):
    path = tmp_path / "m3u8_sort.yml"
    path.write_text("sort:\n  media: loudness\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def _utf8_response(body: str) -> requests.Response:
    resp = requests.Response()
    resp.status_code = 200
    resp.headers["Content-Type"] = "text/plain"
    resp._content = body.encode("utf-8")
    return resp


def test_url_body_is_decoded_as_utf8(monkeypatch):
    body = '#EXTM3U\n#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="a",NAME="Français",URI="fr.m3u8"\n'
    monkeypatch.setattr(fetch.requests, "get", lambda *a, **kw: _utf8_response(body))

    playlist = fetch_playlist("http://example.com/master.m3u8")

    assert playlist.media[0].get("NAME").raw == "Français"


def test_url_body_that_is_not_utf8(monkeypatch):
    resp = _utf8_response("")
    resp._content = b"#EXTM3U\n# caf\xe9\n"
    monkeypatch.setattr(fetch.requests, "get", lambda *a, **kw: resp)

    with pytest.raises(FetchError):
        fetch_text("http://example.com/master.m3u8", FetchSettings(), logger)


@pytest.mark.parametrize("content", [
    "sort: bandwidth\n",
    "fetch:\n  - timeout_secs\n",
    "- fetch\n",
    "fetch:\n  headers: agent\n",
])
def test_load_config_rejects_non_mapping_sections(tmp_path, content):
    path = tmp_path / "m3u8_sort.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
