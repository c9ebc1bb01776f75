"""Shared fixtures for core unit tests"""

from pathlib import Path

import pytest
from markdown_it import MarkdownIt
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from sitepub.core.extract.extract import extract_post
from sitepub.core.parse import parse_source
from sitepub.crud.posts import commit_post


SAMPLE_MD = """\
Intro paragraph with **bold** text.

## Setup

Install the tools.

```bash
apt-get install qemu-kvm
```

## Setup

Second setup section.

### Details

    indented code

Footer paragraph.
"""

SAMPLE_FM_MD = """\
---
title: KVM Internals
date: 2024-03-05
tags: [kvm, virtualization]
categories: Linux
description: How KVM works
---

Body content.
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("gfm-like", options_update={"linkify": False})


@pytest.fixture(name="sample_tokens")
def sample_tokens_fixture(parser):
    return parser.parse(SAMPLE_MD)


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="sample_fm_md")
def sample_fm_md_fixture():
    return SAMPLE_FM_MD


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture(name="add_post")
def add_post_fixture(session):
    """Commit markdown text as a post at path; returns the Post row."""
    def _add(text: str, path: str):
        staged = extract_post(parse_source(text, Path(path)))
        post, _ = commit_post(session, staged)
        session.commit()
        return post
    return _add
