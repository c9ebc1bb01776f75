"""Post version persistence: save, prune, list, and diff operations"""

from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from sitepub.core.utils.diff import unified_diff
from sitepub.crud.models import Post, PostVersion


def get_version(session: Session, post_id: UUID, version_num: int) -> PostVersion:
    """Return one stored version. Raises ValueError if missing."""
    v = session.exec(
        select(PostVersion)
        .where(PostVersion.post_id == post_id)
        .where(PostVersion.version_num == version_num)
    ).one_or_none()
    if v is None:
        raise ValueError(f"Version {version_num} not found for post {post_id}")
    return v


def diff_versions(
    session: Session,
    post: Post,
    from_num: int,
    to_num: int | None = None,
    context: int = 3,
    ) -> list[str]:
    """Unified diff lines between two stored versions; to_num=None compares with the current source."""
    v_from = get_version(session, post.id, from_num)
    if to_num is None:
        return unified_diff(v_from.source, post.source, f"v{from_num}", "current", context)
    v_to = get_version(session, post.id, to_num)
    return unified_diff(v_from.source, v_to.source, f"v{from_num}", f"v{to_num}", context)


def list_versions(session: Session, post_id: UUID) -> list[PostVersion]:
    """Return all versions for a post ordered by version_num ascending."""
    return list(
        session.exec(
            select(PostVersion)
            .where(PostVersion.post_id == post_id)
            .order_by(PostVersion.version_num.asc())
        ).all()
    )


def prune_versions(session: Session, post_id: UUID, max_versions: int) -> int:
    """Delete oldest versions beyond max_versions. Returns count deleted. No-op if max_versions=0."""
    if max_versions == 0:
        return 0

    versions = list_versions(session, post_id)
    excess = len(versions) - max_versions
    if excess <= 0:
        return 0

    for v in versions[:excess]:
        session.delete(v)
    session.flush()

    return excess


def save_version(session: Session, post: Post, max_versions: int = 10) -> PostVersion:
    """Snapshot the current Post source as a new immutable version.

    Computes next version_num as MAX(version_num)+1 for this post, so numbers
    keep increasing after pruning. Prunes afterwards if max_versions > 0.
    """
    result = session.exec(
        select(func.max(PostVersion.version_num))
        .where(PostVersion.post_id == post.id)
    ).one()

    version = PostVersion(
        post_id=post.id,
        version_num=(result or 0) + 1,
        source=post.source,
        hash=post.hash,
    )
    session.add(version)
    session.flush()

    if max_versions > 0:
        prune_versions(session, post.id, max_versions)

    return version
