"""Shared fixtures for server unit tests"""

import pytest

from sitepub.config import Settings


INDEX_HTML = "<html><body>home</body></html>"
POST_HTML = "<html><body>" + "kvm internals " * 100 + "</body></html>"


@pytest.fixture(name="web_root")
def web_root_fixture(tmp_path):
    """A rendered site: index, one post directory, a stylesheet, a feed, and a file name with a space."""
    root = tmp_path / "public"
    (root / "post" / "kvm").mkdir(parents=True)
    (root / "css").mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "post" / "kvm" / "index.html").write_text(POST_HTML)
    (root / "css" / "site.css").write_text("body { margin: 0; }")
    (root / "index.xml").write_text("<rss/>")
    (root / "a b.html").write_text("<p>spaced</p>")
    return root


@pytest.fixture(name="settings")
def settings_fixture(tmp_path, web_root):
    return Settings(web_root=str(web_root), access_log=str(tmp_path / "logs" / "access.log"))
