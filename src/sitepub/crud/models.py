"""Database table definitions for posts, their versions, taxonomy terms, and code snippets"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from sitepub.core.utils.clock import utc_now


class TaxonomyEnum(str, Enum):
    """Classifications rendered as /<taxonomy>/<term>/ list pages"""
    tags = "tags"
    categories = "categories"


class Post(SQLModel, table=True):
    """A blog post and the content source of truth it was committed from"""
    __tablename__ = "posts"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    slug: str = Field(..., index=True, nullable=False)
    section: str = Field(default="", index=True, nullable=False)
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    url: str = Field(..., sa_column=Column(Text, nullable=False))
    date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True, index=True))
    lastmod: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    draft: bool = Field(default=False, nullable=False)
    author: str = Field(default="", nullable=False)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    summary: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    word_count: int = Field(default=0, nullable=False)
    reading_time: int = Field(default=1, nullable=False)
    source: str = Field(..., sa_column=Column(Text, nullable=False))
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    frontmatter: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=False), nullable=False))
    committed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    terms: List["PostTerm"] = Relationship(back_populates="post")
    code_blocks: List["CodeBlock"] = Relationship(back_populates="post")


class PostVersion(SQLModel, table=True):
    """Immutable snapshot of a Post source at a prior state."""
    __tablename__ = "post_versions"
    __table_args__ = (UniqueConstraint("post_id", "version_num", name="uq_postver_post_num"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    post_id: UUID = Field(..., foreign_key="posts.id", index=True, nullable=False)
    version_num: int = Field(..., nullable=False, description="Monotonically increasing per-post version number")
    source: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=False), nullable=False))


class PostTerm(SQLModel, table=True):
    """A tag or category attached to a post, kept in front matter order"""
    __tablename__ = "post_terms"
    post_id: UUID = Field(foreign_key="posts.id", primary_key=True)
    taxonomy: TaxonomyEnum = Field(primary_key=True)
    term: str = Field(primary_key=True)
    position: int = Field(default=0, nullable=False)
    post: Optional[Post] = Relationship(back_populates="terms")


class CodeBlock(SQLModel, table=True):
    """An illustrative snippet embedded in a post (C, Go, Bash...); stored, never executed"""
    __tablename__ = "code_blocks"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    post_id: UUID = Field(..., foreign_key="posts.id", index=True, nullable=False)
    language: str = Field(default="", index=True, nullable=False)
    content: str = Field(..., sa_column=Column(Text, nullable=False))
    position: int = Field(..., nullable=False)
    post: Optional[Post] = Relationship(back_populates="code_blocks")
