"""Post persistence: upsert, revert, term and snippet replacement, publication queries"""

from collections import Counter
from datetime import datetime
from typing import Callable, Iterable

from sqlmodel import Session, select

from sitepub.core.models import StagedPost
from sitepub.core.utils.clock import utc_now
from sitepub.crud.models import CodeBlock, Post, PostTerm, PostVersion, TaxonomyEnum
from sitepub.crud.versioning import get_version, save_version


def get_by_path(session: Session, path: str) -> Post | None:
    """Return the Post with the given content-relative path, or None if not found."""
    return session.exec(select(Post).where(Post.path == path)).one_or_none()


def get_by_slug(session: Session, slug: str) -> Post | None:
    """Return the first Post with the given slug, or None if not found."""
    return session.exec(select(Post).where(Post.slug == slug).order_by(Post.path)).first()


def get_all_posts(session: Session) -> list[Post]:
    """Return all posts ordered by path."""
    return list(session.exec(select(Post).order_by(Post.path)).all())


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Newest first; undated posts last; ties broken by title."""
    posts = list(posts)
    dated = sorted((p for p in posts if p.date), key=lambda p: p.title.lower())
    undated = sorted((p for p in posts if not p.date), key=lambda p: p.title.lower())
    return sorted(dated, key=lambda p: p.date, reverse=True) + undated


def is_published(post: Post, now: datetime, drafts: bool = False, future: bool = False) -> bool:
    """Drafts and future-dated posts are hidden unless explicitly enabled."""
    if post.draft and not drafts:
        return False
    if post.date and post.date > now and not future:
        return False
    return True


def get_published(
    session: Session,
    now: datetime,
    drafts: bool = False,
    future: bool = False,
    ) -> list[Post]:
    """Return the posts a build should render, newest first."""
    return sort_posts(p for p in get_all_posts(session) if is_published(p, now, drafts, future))


def get_by_section(session: Session, section: str) -> list[Post]:
    """Return posts under the given top-level content directory, newest first."""
    return sort_posts(session.exec(select(Post).where(Post.section == section)).all())


def list_sections(session: Session) -> list[str]:
    """Return sorted distinct sections; root-level pages report ''."""
    return sorted(set(session.exec(select(Post.section)).all()))


def terms_for(session: Session, post: Post, taxonomy: TaxonomyEnum) -> list[str]:
    """Terms of one taxonomy on a post, in front matter order."""
    rows = session.exec(
        select(PostTerm)
        .where(PostTerm.post_id == post.id)
        .where(PostTerm.taxonomy == taxonomy)
        .order_by(PostTerm.position)
    ).all()
    return [r.term for r in rows]


def get_by_term(session: Session, taxonomy: TaxonomyEnum, term: str) -> list[Post]:
    """Return posts carrying term (case-insensitive), newest first."""
    rows = session.exec(select(PostTerm).where(PostTerm.taxonomy == taxonomy)).all()
    ids = {r.post_id for r in rows if r.term.lower() == term.lower()}
    return sort_posts(p for p in get_all_posts(session) if p.id in ids)


def list_terms(session: Session, taxonomy: TaxonomyEnum) -> list[tuple[str, int]]:
    """Return (term, post count) pairs sorted by count desc, then name."""
    rows = session.exec(select(PostTerm.term).where(PostTerm.taxonomy == taxonomy)).all()
    return sorted(Counter(rows).items(), key=lambda kv: (-kv[1], kv[0].lower()))


def code_blocks_for(session: Session, post: Post) -> list[CodeBlock]:
    """Embedded snippets of a post in document order."""
    return list(session.exec(
        select(CodeBlock).where(CodeBlock.post_id == post.id).order_by(CodeBlock.position)
    ).all())


def _delete_children(session: Session, post_id, versions: bool = False) -> None:
    for model in (PostTerm, CodeBlock) + ((PostVersion,) if versions else ()):
        for row in session.exec(select(model).where(model.post_id == post_id)).all():
            session.delete(row)
    session.flush()


def _replace_children(session: Session, post_id, staged: StagedPost) -> None:
    """Delete existing terms/snippets for a post and insert the staged ones."""
    _delete_children(session, post_id)
    for taxonomy, terms in ((TaxonomyEnum.tags, staged.tags), (TaxonomyEnum.categories, staged.categories)):
        for position, term in enumerate(terms):
            session.add(PostTerm(post_id=post_id, taxonomy=taxonomy, term=term, position=position))
    for blk in staged.code_blocks:
        session.add(CodeBlock(post_id=post_id, language=blk.language, content=blk.content, position=blk.position))
    session.flush()


def _apply(post: Post, staged: StagedPost) -> None:
    """Copy staged fields onto a Post row; front matter is stored JSON-safe."""
    post.slug = staged.slug
    post.section = staged.section
    post.title = staged.title
    post.url = staged.url
    post.date = staged.date
    post.lastmod = staged.lastmod
    post.draft = staged.draft
    post.author = staged.author
    post.description = staged.description
    post.summary = staged.summary
    post.word_count = staged.word_count
    post.reading_time = staged.reading_time
    post.source = staged.source
    post.body = staged.body
    post.hash = staged.hash
    post.frontmatter = staged.model_dump(mode="json")["frontmatter"] or None


def commit_post(
    session: Session,
    staged: StagedPost,
    max_versions: int = 10,
    committed_at: datetime | None = None,
    ) -> tuple[Post, str]:
    """Upsert a staged post keyed by path.

    Returns (post, status) where status is 'created', 'updated', or 'unchanged'.
    Flushes but does not commit; the caller controls the transaction.
    committed_at is set on created/updated posts only.
    """
    post = get_by_path(session, staged.path)

    if post:
        if post.hash == staged.hash:
            return post, 'unchanged'
        save_version(session, post, max_versions)
        _apply(post, staged)
        post.updated_at = utc_now()
        post.committed_at = committed_at
        session.add(post)
        session.flush()
        _replace_children(session, post.id, staged)
        return post, 'updated'

    post = Post(path=staged.path, slug=staged.slug, title=staged.title, url=staged.url,
                source=staged.source, body=staged.body, hash=staged.hash, committed_at=committed_at)
    _apply(post, staged)
    session.add(post)
    session.flush()
    _replace_children(session, post.id, staged)
    return post, 'created'


def delete_post(session: Session, post: Post) -> None:
    """Remove a post with its terms, snippets, and version history."""
    _delete_children(session, post.id, versions=True)
    session.delete(post)
    session.flush()


def delete_missing(session: Session, keep_paths: Iterable[str]) -> list[str]:
    """Delete posts whose path is not in keep_paths. Returns removed slugs."""
    keep = set(keep_paths)
    removed = []
    for post in get_all_posts(session):
        if post.path not in keep:
            removed.append(post.slug)
            delete_post(session, post)
    return removed


def revert_to_version(
    session: Session,
    post: Post,
    version_num: int,
    stage: Callable[[str], StagedPost],
    max_versions: int = 10,
    committed_at: datetime | None = None,
    ) -> tuple[Post, str]:
    """Promote a prior version's source as a new revision of the post.

    stage re-derives a StagedPost from the stored source, so the restored
    revision goes through commit_post like any edit: the current state is
    snapshotted first and every derived field is refreshed.
    Raises ValueError if version_num is not found for this post.
    """
    target = get_version(session, post.id, version_num)
    staged = stage(target.source)
    if staged.path != post.path:
        raise ValueError(f"Version {version_num} staged for {staged.path}, expected {post.path}")
    return commit_post(session, staged, max_versions, committed_at)
