"""Site assembly: published posts, sections, taxonomies, menus, and pagination"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlmodel import Session

from sitepub.config import MenuItem, Settings
from sitepub.core.models import Pager, StagedHeading, Term
from sitepub.core.render.markdown import render_markdown
from sitepub.core.utils.slug import slugify
from sitepub.crud.models import Post, TaxonomyEnum
from sitepub.crud.posts import code_blocks_for, get_published, terms_for


logger = logging.getLogger(__name__)

TAXONOMIES = tuple(t.value for t in TaxonomyEnum)


@dataclass(eq=False)
class PostView:
    """Template-facing post: stored fields plus rendered HTML and resolved terms."""
    title:        str
    permalink:    str
    slug:         str
    section:      str
    path:         str
    date:         Optional[datetime]
    lastmod:      Optional[datetime]
    draft:        bool
    author:       str
    description:  str
    summary:      str
    word_count:   int
    reading_time: int
    content:      str
    toc:          list[StagedHeading]
    languages:    list[str]
    params:       dict[str, Any]
    tags:         list[Term] = field(default_factory=list)
    categories:   list[Term] = field(default_factory=list)


@dataclass
class Site:
    settings:   Settings
    build_time: datetime
    posts:      list[PostView]
    sections:   dict[str, list[PostView]]
    taxonomies: dict[str, dict[str, Term]]
    menu:       list[MenuItem]

    @property
    def title(self) -> str:
        return self.settings.title


def paginate(items: list, size: int, base_path: str) -> list[Pager]:
    """Split items into pagers; size 0 means a single page, and an empty list still yields one page."""
    if size <= 0 or not items:
        return [Pager(number=1, total=1, items=list(items), base_path=base_path)]
    total = math.ceil(len(items) / size)
    return [
        Pager(number=n + 1, total=total, items=items[n * size:(n + 1) * size], base_path=base_path)
        for n in range(total)
    ]


def build_menu(items: list[MenuItem]) -> list[MenuItem]:
    """Sort by weight and nest children under their parent identifier.

    Entries naming an unknown parent stay at the top level.
    """
    ordered = sorted(items, key=lambda m: (m.weight, m.name.lower()))
    by_id = {m.identifier: m.model_copy(update={"children": []}) for m in ordered}
    roots = []
    for m in ordered:
        node = by_id[m.identifier]
        parent = by_id.get(m.parent) if m.parent else None
        if parent is not None and parent is not node:
            parent.children.append(node)
        else:
            roots.append(node)
    return roots


def _view(session: Session, post: Post, parser_config: str) -> PostView:
    content, toc = render_markdown(post.body, parser_config)
    languages = list(dict.fromkeys(b.language for b in code_blocks_for(session, post) if b.language))
    return PostView(
        title=post.title,
        permalink=post.url,
        slug=post.slug,
        section=post.section,
        path=post.path,
        date=post.date,
        lastmod=post.lastmod or post.date,
        draft=post.draft,
        author=post.author,
        description=post.description or post.summary,
        summary=post.summary,
        word_count=post.word_count,
        reading_time=post.reading_time,
        content=content,
        toc=toc,
        languages=languages,
        params=dict(post.frontmatter or {}),
    )


def build_site(session: Session, settings: Settings, now: datetime) -> Site:
    """Collect everything templates need from the published posts in the store."""
    posts = get_published(session, now, settings.build_drafts, settings.build_future)
    logger.info("Assembling site from %d published post(s)", len(posts))

    views = []
    sections: dict[str, list[PostView]] = {}
    taxonomies: dict[str, dict[str, Term]] = {t: {} for t in TAXONOMIES}

    for post in posts:
        view = _view(session, post, settings.parser_config)
        if not view.author:
            view.author = settings.author
        for taxonomy in TaxonomyEnum:
            terms = taxonomies[taxonomy.value]
            for name in terms_for(session, post, taxonomy):
                slug = slugify(name)
                if not slug:
                    logger.warning("Skipping %s term %r on %s: empty slug", taxonomy.value, name, post.path)
                    continue
                term = terms.setdefault(slug, Term(taxonomy=taxonomy.value, name=name, slug=slug))
                if any(p is view for p in term.posts):
                    continue
                term.posts.append(view)
                getattr(view, taxonomy.value).append(term)
        if view.section:
            sections.setdefault(view.section, []).append(view)
        views.append(view)

    return Site(
        settings=settings,
        build_time=now,
        posts=views,
        sections=sections,
        taxonomies=taxonomies,
        menu=build_menu(settings.menu),
    )
