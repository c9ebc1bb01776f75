"""In-memory copy of the web root and request path sanitising"""

import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional
from urllib.parse import quote_plus


logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
CACHE_CONTROL = "max-age=31536000"
_TEXT_TYPES = {"application/javascript", "application/json", "application/xml", "image/svg+xml"}


def sanitize_path(path: str) -> str:
    """URL-escape everything but '/' and drop control characters; safe for logs and metric labels."""
    escaped = quote_plus(path, safe="/")
    return "".join(c for c in escaped if ord(c) >= 32 and ord(c) != 127)


def guess_content_type(path: Path) -> str:
    ctype, _ = mimetypes.guess_type(path.name)
    ctype = ctype or DEFAULT_CONTENT_TYPE
    if ctype.startswith("text/") or ctype in _TEXT_TYPES:
        ctype += "; charset=utf-8"
    return ctype


@dataclass
class FileEntry:
    content_type: str
    content:      bytes
    mod_time:     datetime      # load time, UTC

    @property
    def etag(self) -> str:
        return f'"{int(self.mod_time.timestamp())}"'

    @property
    def last_modified(self) -> str:
        return format_datetime(self.mod_time, usegmt=True)

    def headers(self) -> dict[str, str]:
        return {
            "Cache-Control": CACHE_CONTROL,
            "X-Content-Type-Options": "nosniff",
            "Content-Length": str(len(self.content)),
            "Last-Modified": self.last_modified,
            "ETag": self.etag,
            "Content-Type": self.content_type,
        }


class MemoryStore:
    """URL path -> FileEntry map built once at startup."""

    def __init__(self, files: Optional[dict[str, FileEntry]] = None):
        self.files: dict[str, FileEntry] = files or {}

    def __len__(self) -> int:
        return len(self.files)

    @classmethod
    def load(cls, root: str | Path) -> "MemoryStore":
        """Read every file under root; directories with an index.html are also keyed as '/dir/'.

        Raises FileNotFoundError if root is not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Web root not found: {root}")
        loaded_at = datetime.now(timezone.utc).replace(microsecond=0)
        store = cls()
        for path in sorted(root.rglob("*")):
            url_path = "/" + path.relative_to(root).as_posix()
            if path.is_dir():
                index = path / "index.html"
                if index.is_file():
                    store.files[url_path + "/"] = FileEntry(guess_content_type(index), index.read_bytes(), loaded_at)
                continue
            store.files[url_path] = FileEntry(guess_content_type(path), path.read_bytes(), loaded_at)
            logger.debug("Loaded %s", url_path)
        logger.info("Loaded %d path(s) from %s into memory", len(store), root)
        return store

    def lookup(self, path: str) -> Optional[FileEntry]:
        """'/a/' serves '/a/index.html'; '/a' falls back to '/a/index.html'."""
        if path.endswith("/"):
            path += "index.html"
        entry = self.files.get(path)
        if entry is None and not path.endswith("/index.html"):
            entry = self.files.get(path + "/index.html")
        return entry
