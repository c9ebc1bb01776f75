"""Site writer: render pages, feeds, and sitemap into the output directory"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from jinja2 import Environment

from sitepub.core.site import Site, paginate


logger = logging.getLogger(__name__)


def output_path(output_dir: Path, url_path: str) -> Path:
    """Map a URL path to a file: '/post/x/' -> post/x/index.html, '/feed.xml' -> feed.xml.

    Raises ValueError for paths escaping output_dir.
    """
    target = output_dir / url_path.lstrip('/')
    if url_path.endswith('/'):
        target = target / 'index.html'
    root = output_dir.resolve()
    if not target.resolve().is_relative_to(root):
        raise ValueError(f"Refusing to write outside {output_dir}: {url_path}")
    return target


class SiteWriter:
    """Renders templates to files and tracks what was written."""

    def __init__(self, env: Environment, output_dir: Path):
        self.env = env
        self.output_dir = output_dir
        self.written: dict[str, Path] = {}

    def write(self, url_path: str, template: str, **context) -> Path:
        target = output_path(self.output_dir, url_path)
        if url_path in self.written:
            logger.warning("Duplicate output for %s; later page wins", url_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.env.get_template(template).render(**context), encoding='utf-8')
        self.written[url_path] = target
        logger.debug("Wrote %s", target)
        return target

    def write_list(self, site: Site, base_path: str, posts: list, title: str, kind: str, term=None) -> None:
        for pager in paginate(posts, site.settings.pager_size, base_path):
            self.write(pager.permalink, 'list.html', site=site, pager=pager, title=title, kind=kind, term=term)


def copy_static(static_dir: Path, output_dir: Path) -> list[Path]:
    """Copy static files over the output tree; returns copied destination paths."""
    if not static_dir.is_dir():
        return []
    copied = []
    for src in sorted(p for p in static_dir.rglob('*') if p.is_file()):
        dest = output_dir / src.relative_to(static_dir)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)
        copied.append(dest)
    return copied


def write_site(
    site: Site,
    env: Environment,
    output_dir: Path,
    static_dir: Optional[Path] = None,
    clean: bool = False,
    ) -> list[Path]:
    """Write every page of the site. Returns the written file paths.

    Layout:
      /<permalink>/index.html          single post
      /, /page/N/                      home list
      /<section>/                      section list
      /<taxonomy>/, /<taxonomy>/<t>/   term index and term lists
      /index.xml, /sitemap.xml, /404.html
    """
    if clean and output_dir.exists():
        logger.info("Cleaning %s", output_dir)
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    writer = SiteWriter(env, output_dir)
    settings = site.settings

    for post in site.posts:
        writer.write(post.permalink, 'single.html', site=site, post=post, title=post.title)

    writer.write_list(site, '/', site.posts, settings.title, 'home')

    for section, posts in sorted(site.sections.items()):
        writer.write_list(site, f"/{section}/", posts, section.title(), 'section')

    for taxonomy, terms in site.taxonomies.items():
        ordered = sorted(terms.values(), key=lambda t: (-len(t.posts), t.name.lower()))
        writer.write(f"/{taxonomy}/", 'terms.html', site=site, taxonomy=taxonomy, terms=ordered,
                     title=taxonomy.title())
        for term in ordered:
            writer.write_list(site, term.permalink, term.posts, term.name, 'term', term=term)

    writer.write('/index.xml', 'rss.xml', site=site, posts=site.posts[:settings.rss_limit])
    lastmods = {p.permalink: p.lastmod for p in site.posts}
    pages = [(url, lastmods.get(url)) for url in sorted(writer.written) if url.endswith('/')]
    writer.write('/sitemap.xml', 'sitemap.xml', site=site, pages=pages)
    writer.write('/404.html', '404.html', site=site, title="404 Page not found")

    written = list(writer.written.values())
    if static_dir is not None:
        written.extend(copy_static(static_dir, output_dir))
    logger.info("Wrote %d file(s) to %s", len(written), output_dir)
    return written
