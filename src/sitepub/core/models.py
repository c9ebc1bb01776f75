"""Intermediate data models for the parse, extract, and render pipeline"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel


class StagedHeading(BaseModel):
    """A table-of-contents entry: h2/h3 heading text and its anchor id."""
    level:  int
    text:   str
    anchor: str


class StagedCodeBlock(BaseModel):
    """A fenced or indented code snippet embedded in a post."""
    language: str = ""
    content:  str
    position: int


class StagedPost(BaseModel):
    """Public staging contract: normalized post written by extract, read by commit."""
    slug:         str
    path:         str               # relative to the content root, posix separators
    section:      str = ""
    source:       str               # full file content (front matter included)
    body:         str               # front matter stripped
    hash:         str
    frontmatter:  dict[str, Any] = {}
    title:        str
    date:         Optional[datetime] = None
    lastmod:      Optional[datetime] = None
    draft:        bool = False
    author:       str = ""
    description:  str = ""
    url:          str = ""
    summary:      str = ""
    tags:         list[str] = []
    categories:   list[str] = []
    word_count:   int = 0
    reading_time: int = 1
    toc:          list[StagedHeading] = []
    code_blocks:  list[StagedCodeBlock] = []


@dataclass
class ParsedPost:
    """Internal parse result carrying markdown-it tokens; not persisted."""
    path:        Path          # relative to the content root
    slug:        str
    raw:         str           # full file content (includes front matter)
    body:        str           # front matter stripped
    hash:        str
    frontmatter: dict[str, Any]
    tokens:      list          # markdown-it Token objects


@dataclass(eq=False)
class Term:
    """One taxonomy value and the published posts carrying it."""
    taxonomy: str
    name:     str
    slug:     str
    posts:    list = field(default_factory=list)

    @property
    def permalink(self) -> str:
        return f"/{self.taxonomy}/{self.slug}/"


@dataclass
class Pager:
    """One page of a paginated post list."""
    number:     int
    total:      int
    items:      list
    base_path:  str

    @property
    def permalink(self) -> str:
        return page_path(self.base_path, self.number)

    @property
    def has_prev(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total

    @property
    def prev(self) -> Optional[str]:
        return page_path(self.base_path, self.number - 1) if self.has_prev else None

    @property
    def next(self) -> Optional[str]:
        return page_path(self.base_path, self.number + 1) if self.has_next else None


def page_path(base_path: str, number: int) -> str:
    """'/tags/go/' page 1 stays as is; page N becomes '/tags/go/page/N/'."""
    return base_path if number <= 1 else f"{base_path}page/{number}/"
