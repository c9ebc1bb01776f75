"""Unit tests for crud/versioning.py"""

import pytest
from sqlmodel import Session

from sitepub.core.utils.hashing import sha256
from sitepub.crud.models import Post, PostVersion
from sitepub.crud.versioning import diff_versions, get_version, list_versions, prune_versions, save_version


# --- helpers ---

def _make_version(session: Session, post: Post, source: str) -> PostVersion:
    """Mutate post.source + hash and save a version snapshot."""
    post.source = source
    post.hash = sha256(source)
    return save_version(session, post, max_versions=0)


# --- save_version ---

def test_save_version_creates_record(session, post):
    """save_version creates a PostVersion row."""
    v = save_version(session, post)
    assert session.get(PostVersion, v.id) is not None


def test_save_version_snapshots_source(session, post):
    """The snapshot carries the post's current source and hash."""
    v = save_version(session, post)
    assert v.source == post.source
    assert v.hash == post.hash


def test_save_version_first_num_is_one(session, post):
    """save_version assigns version_num=1 to the first snapshot."""
    assert save_version(session, post).version_num == 1


def test_save_version_increments_num(session, post):
    """save_version increments version_num on each call."""
    v1 = save_version(session, post, max_versions=0)
    v2 = save_version(session, post, max_versions=0)
    assert v2.version_num == v1.version_num + 1


def test_save_version_monotonic_after_prune(session, post):
    """Numbers keep increasing after old versions are pruned."""
    for _ in range(4):
        save_version(session, post, max_versions=2)
    assert [v.version_num for v in list_versions(session, post.id)] == [3, 4]
    assert save_version(session, post, max_versions=2).version_num == 5


def test_save_version_prunes_on_overflow(session, post):
    """save_version prunes oldest versions when count exceeds max_versions."""
    for _ in range(5):
        save_version(session, post, max_versions=3)
    assert len(list_versions(session, post.id)) == 3


def test_save_version_no_prune_when_disabled(session, post):
    """save_version does not prune when max_versions=0."""
    for _ in range(5):
        save_version(session, post, max_versions=0)
    assert len(list_versions(session, post.id)) == 5


# --- prune_versions ---

@pytest.mark.parametrize("n_saves,max_v,expected_remaining,expected_deleted", [
    (5, 3, 3, 2),
    (3, 5, 3, 0),
    (5, 0, 5, 0),
])
def test_prune_versions(session, post, n_saves, max_v, expected_remaining, expected_deleted):
    """prune_versions keeps the N newest versions and deletes the oldest."""
    for _ in range(n_saves):
        save_version(session, post, max_versions=0)
    assert prune_versions(session, post.id, max_v) == expected_deleted
    assert len(list_versions(session, post.id)) == expected_remaining


def test_prune_versions_keeps_newest(session, post):
    """prune_versions deletes lowest version_nums, preserving the highest."""
    for _ in range(4):
        save_version(session, post, max_versions=0)
    prune_versions(session, post.id, 2)
    assert [v.version_num for v in list_versions(session, post.id)] == [3, 4]


# --- list_versions / get_version ---

def test_list_versions_empty(session, post):
    assert list_versions(session, post.id) == []


def test_list_versions_isolates_by_post(session, post):
    """list_versions only returns versions for the given post_id."""
    other = Post(path="post/other.md", slug="other", title="Other", url="/post/other/",
                 source="other", body="other", hash=sha256("other"))
    session.add(other)
    session.flush()
    save_version(session, post, max_versions=0)
    save_version(session, other, max_versions=0)
    assert all(v.post_id == post.id for v in list_versions(session, post.id))


def test_get_version_missing(session, post):
    with pytest.raises(ValueError, match="Version 3 not found"):
        get_version(session, post.id, 3)


# --- diff_versions ---

def test_diff_versions_between_versions(session, post):
    """diff_versions returns unified diff lines labelled with version numbers."""
    _make_version(session, post, "# Hello\n\nWorld\n")
    _make_version(session, post, "# Hello\n\nChanged\n")
    lines = diff_versions(session, post, 1, 2)
    assert lines[0].startswith("--- v1")
    assert lines[1].startswith("+++ v2")
    assert "-World\n" in lines
    assert "+Changed\n" in lines


def test_diff_versions_against_current(session, post):
    """to_num=None compares the version with the post's current source."""
    _make_version(session, post, "old\n")
    post.source = "new\n"
    lines = diff_versions(session, post, 1)
    assert lines[1].startswith("+++ current")
    assert "+new\n" in lines


def test_diff_versions_identical_content(session, post):
    """Identical versions diff to an empty list."""
    _make_version(session, post, "# Same\n")
    _make_version(session, post, "# Same\n")
    assert diff_versions(session, post, 1, 2) == []


@pytest.mark.parametrize("from_num,to_num", [(1, 99), (99, 1)])
def test_diff_versions_raises_on_missing(session, post, from_num, to_num):
    """diff_versions raises ValueError when a requested version_num does not exist."""
    save_version(session, post, max_versions=0)
    with pytest.raises(ValueError):
        diff_versions(session, post, from_num, to_num)
