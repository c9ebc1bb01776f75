"""Unit tests for server/store.py"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from sitepub.server.store import FileEntry, MemoryStore, guess_content_type, sanitize_path


@pytest.mark.parametrize("path,expected", [
    ("/post/kvm/", "/post/kvm/"),
    ("/a b", "/a+b"),
    ("/q?x=1", "/q%3Fx%3D1"),
    ("/bad\nline", "/bad%0Aline"),
    ("/ok\x7f", "/ok%7F"),
])
def test_sanitize_path(path, expected):
    """Everything except '/' is escaped so labels and log lines stay printable."""
    assert sanitize_path(path) == expected


@pytest.mark.parametrize("name,expected", [
    ("index.html", "text/html; charset=utf-8"),
    ("site.css", "text/css; charset=utf-8"),
    ("data.json", "application/json; charset=utf-8"),
    ("logo.png", "image/png"),
    ("blob", "application/octet-stream"),
])
def test_guess_content_type(name, expected):
    assert guess_content_type(Path(name)) == expected


def test_file_entry_headers():
    """Headers carry a one-year cache, nosniff, and validators derived from load time."""
    loaded = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
    entry = FileEntry("text/html; charset=utf-8", b"hello", loaded)
    headers = entry.headers()
    assert headers["Cache-Control"] == "max-age=31536000"
    assert headers["X-Content-Type-Options"] == "nosniff"
    assert headers["Content-Length"] == "5"
    assert headers["Last-Modified"] == "Sat, 01 Jun 2024 12:00:00 GMT"
    assert headers["ETag"] == f'"{int(loaded.timestamp())}"'
    assert headers["Content-Type"] == "text/html; charset=utf-8"


def test_load_keys_files_and_directories(web_root):
    """Every file is keyed by URL path; directories with an index also get a '/dir/' key."""
    store = MemoryStore.load(web_root)
    assert set(store.files) == {
        "/index.html", "/index.xml", "/css/site.css", "/a b.html",
        "/post/kvm/index.html", "/post/kvm/",
    }
    assert len(store) == 6
    assert store.files["/css/site.css"].content == b"body { margin: 0; }"


def test_load_shares_one_timestamp(web_root):
    store = MemoryStore.load(web_root)
    times = {e.mod_time for e in store.files.values()}
    assert len(times) == 1
    assert next(iter(times)).microsecond == 0


def test_load_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError, match="Web root not found"):
        MemoryStore.load(tmp_path / "nope")


@pytest.mark.parametrize("path,key", [
    ("/", "/index.html"),
    ("/post/kvm/", "/post/kvm/index.html"),
    ("/post/kvm", "/post/kvm/index.html"),
    ("/css/site.css", "/css/site.css"),
])
def test_lookup_index_fallback(web_root, path, key):
    store = MemoryStore.load(web_root)
    assert store.lookup(path) is store.files[key]


@pytest.mark.parametrize("path", ["/missing", "/post/", "/css/site.css/"])
def test_lookup_miss(web_root, path):
    assert MemoryStore.load(web_root).lookup(path) is None
