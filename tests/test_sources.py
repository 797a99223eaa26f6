# tests/test_sources.py

import http.client
import io
import urllib.error

import pytest

import sources
from settings import Settings, SourceSpec
from sources import (
    SourceLoadError,
    collection_from_text,
    decode_bytes,
    fetch_url,
    load_source,
    load_sources,
)


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def test_decode_utf8():
    assert decode_bytes("Gödel".encode("utf-8")) == ("Gödel", "utf-8")


def test_decode_falls_back_to_latin1():
    text, encoding = decode_bytes("Gödel".encode("latin-1"))
    assert text == "Gödel"
    assert encoding == "latin-1"


def test_collection_from_text_logs_skipped_blocks():
    messages = []
    collection = collection_from_text(
        "a.bib",
        "@article{k, title = {Fine}}\n@misc{nokey}\n",
        log=messages.append,
    )
    assert [r.identifier for r in collection.records] == ["k"]
    assert collection.records[0].title == "Fine"
    assert any("skipped 1" in m for m in messages)


def test_load_local_file(bib_files):
    messages = []
    spec = SourceSpec(name="ce", location=str(bib_files[0]))
    collection = load_source(spec, log=messages.append)

    assert collection.available
    assert collection.name == "ce"
    assert [r.identifier for r in collection.records] == ["ce1", "ce2", "ce3"]
    assert any("ce: 3 entries" in m for m in messages)


def test_load_latin1_file(tmp_path):
    path = tmp_path / "old.bib"
    path.write_bytes("@book{k, title = {Über Alles}}".encode("latin-1"))
    messages = []
    collection = load_source(SourceSpec("old", str(path)), log=messages.append)

    assert collection.records[0].title == "Über Alles"
    assert any("latin-1" in m for m in messages)


def test_missing_file_gives_empty_unavailable_collection(tmp_path):
    messages = []
    spec = SourceSpec(name="gone", location=str(tmp_path / "gone.bib"))
    collection = load_source(spec, log=messages.append)

    assert not collection.available
    assert collection.records == []
    assert collection.error == "file not found"
    assert any("❌ gone" in m for m in messages)


def test_fetch_url_returns_body(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout=None):
        seen["url"] = req.full_url
        seen["timeout"] = timeout
        return _FakeResponse(b"@misc{u, title = {Remote}}")

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)
    assert fetch_url("https://example.org/x.bib", timeout=4) == b"@misc{u, title = {Remote}}"
    assert seen == {"url": "https://example.org/x.bib", "timeout": 4}


def test_fetch_url_http_error(monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 404, "Not Found", {}, None)

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(SourceLoadError) as info:
        fetch_url("https://example.org/missing.bib")
    assert info.value.reason == "HTTP 404: Not Found"


def test_failed_url_does_not_stop_other_sources(monkeypatch, bib_files):
    def fake_urlopen(req, timeout=None):
        raise urllib.error.URLError("unreachable")

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)
    settings = Settings(
        sources=[
            SourceSpec("remote", "https://example.org/fub.bib"),
            SourceSpec("local", str(bib_files[1])),
        ]
    )
    collections = load_sources(settings, log=lambda _: None)

    assert [c.name for c in collections] == ["remote", "local"]
    assert not collections[0].available
    assert "unreachable" in collections[0].error
    assert [r.identifier for r in collections[1].records] == ["sc3"]


@pytest.mark.parametrize(
    "error",
    [
        http.client.RemoteDisconnected("Remote end closed connection"),
        ConnectionResetError("Connection reset by peer"),
        ValueError("Invalid IPv6 URL"),
    ],
)
def test_any_fetch_failure_leaves_an_empty_slot(monkeypatch, bib_files, error):
    def fake_urlopen(req, timeout=None):
        raise error

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)
    settings = Settings(
        sources=[
            SourceSpec("local", str(bib_files[0])),
            SourceSpec("remote", "https://example.org/b.bib"),
        ]
    )
    collections = load_sources(settings, log=lambda _: None)

    assert [c.name for c in collections] == ["local", "remote"]
    assert len(collections[0].records) == 3
    assert not collections[1].available
    assert collections[1].records == []
    assert type(error).__name__ in collections[1].error
