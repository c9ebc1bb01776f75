"""Jinja2 environment: bundled theme, user overrides, and URL/date filters"""

from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, select_autoescape


THEME_DIR = Path(__file__).resolve().parent.parent.parent / "templates"


def absurl(path: str, base_url: str) -> str:
    """'/post/x/' -> 'https://example.com/post/x/' for an absolute base; root-relative otherwise."""
    if "://" in path:
        return path
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def relurl(path: str, base_url: str) -> str:
    """Prefix path with the base URL's path component ('/blog/' + 'post/x/')."""
    if "://" in path:
        return path
    prefix = urlsplit(base_url).path.rstrip("/")
    return prefix + "/" + path.lstrip("/")


def format_date(value: Optional[datetime], fmt: str = "%b %d, %Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def rfc822(value: Optional[datetime]) -> str:
    """RSS pubDate format; naive datetimes are UTC."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value)


def make_environment(base_url: str = "/", template_dir: Optional[str] = None) -> Environment:
    """Templates from template_dir override the bundled theme by file name."""
    loaders = []
    if template_dir:
        loaders.append(FileSystemLoader(template_dir))
    loaders.append(FileSystemLoader(str(THEME_DIR)))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["absurl"] = lambda path: absurl(path, base_url)
    env.filters["relurl"] = lambda path: relurl(path, base_url)
    env.filters["date"] = format_date
    env.filters["rfc822"] = rfc822
    return env
