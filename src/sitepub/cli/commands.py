"""CLI command implementations"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from sqlmodel import Session

from sitepub.config import Settings, load_config
from sitepub.core.extract.extract import extract_post
from sitepub.core.parse import discover_files, parse_file
from sitepub.core.pipeline import clear_staging, run_commit, run_extract, run_render, run_revert
from sitepub.core.utils.diff import diff_summary
from sitepub.core.utils.slug import slugify
from sitepub.crud.database import init_db, make_engine, reset_db
from sitepub.crud.models import TaxonomyEnum
from sitepub.crud.posts import (
    get_all_posts, get_by_section, get_by_slug, get_by_term, list_sections, list_terms, sort_posts,
)
from sitepub.crud.versioning import diff_versions, list_versions
from sitepub.logs import setup_logging
from sitepub.server.run import serve
from sitepub.version import get_version_info


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _echo_commit(counts: dict, changes: list, removed: list) -> None:
    """Print per-post commit status and a summary line."""
    for status, slug in changes:
        typer.echo(f"  {status}: {slug}")
    for slug in removed:
        typer.echo(f"  removed: {slug}")
    typer.echo(
        f"Commit complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged, "
        f"{len(removed)} removed"
    )


def _extract(settings: Settings, path: str) -> list:
    staging_dir = Path(settings.staging_dir)
    try:
        results = run_extract(path, settings.content_dir, settings.parser_config, staging_dir, settings.summary_length)
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Extracted {len(results)} post(s) to {staging_dir}/")
    return results


def _render(settings: Settings, engine) -> None:
    try:
        written = run_render(engine, settings)
    except Exception as e:
        _fail("Render failed", e)
    typer.echo(f"Rendered {len(written)} file(s) to {settings.output_dir}/")


def _build(settings: Settings) -> None:
    """Full build: fresh staging from content_dir, commit with pruning, render."""
    if not Path(settings.content_dir).is_dir():
        _fail(f"Content directory not found: {settings.content_dir}")
    engine = _engine(settings)
    clear_staging(Path(settings.staging_dir))
    _extract(settings, settings.content_dir)
    try:
        counts, changes, removed = run_commit(engine, settings.max_versions, Path(settings.staging_dir), prune=True)
    except Exception as e:
        _fail("Commit failed", e)
    if counts:
        _echo_commit(counts, changes, removed)
    _render(settings, engine)


def main_callback(
    debug: Annotated[bool, typer.Option("--debug", help="Verbose logging")] = False,
    ):
    """Markdown blog publishing pipeline and static site server."""
    setup_logging(debug)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def new_cmd(
    title: Annotated[str, typer.Argument(help="Post title")],
    section: Annotated[str, typer.Option("--section", help="Content section (top-level directory)")] = "post",
    tags: Annotated[Optional[list[str]], typer.Option("--tag", help="Tag; repeatable")] = None,
    categories: Annotated[Optional[list[str]], typer.Option("--category", help="Category; repeatable")] = None,
    ):
    """Create a draft post with front matter under the content directory."""
    settings = _settings()
    if section in ('.', '..') or Path(section).name != section or '\\' in section:
        _fail(f"Invalid section {section!r}: expected a single directory name")
    slug = slugify(title)
    if not slug:
        _fail(f"Cannot derive a file name from title: {title!r}")
    target = Path(settings.content_dir) / section / f"{slug}.md"
    if target.exists():
        _fail(f"File already exists: {target}")
    frontmatter = {
        "title": title,
        "date": datetime.now().replace(microsecond=0).astimezone().isoformat(),
        "draft": True,
        "tags": tags or [],
        "categories": categories or [],
    }
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        f"---\n{yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)}---\n\n",
        encoding='utf-8',
    )
    typer.echo(f"Created {target}")


def extract_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to extract; defaults to content_dir")] = None,
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Staging directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Parse posts and stage normalized JSON for commit."""
    settings = _settings(overrides={"staging_dir": staging, "parser_config": parser})
    _extract(settings, path or settings.content_dir)


def commit_cmd(
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Staging directory")] = None,
    versions: Annotated[Optional[int], typer.Option("--max-versions", help="Max stored versions per post")] = None,
    prune: Annotated[bool, typer.Option("--prune", help="Delete posts that are not staged")] = False,
    ):
    """Upsert staged posts to the database."""
    settings = _settings(overrides={"staging_dir": staging, "max_versions": versions})
    engine = _engine(settings)
    try:
        counts, changes, removed = run_commit(engine, settings.max_versions, Path(settings.staging_dir), prune)
    except Exception as e:
        _fail("Commit failed", e)
    if not counts:
        typer.echo("Nothing staged. Run 'sitepub extract' first.")
        raise typer.Exit(1)
    _echo_commit(counts, changes, removed)


def render_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    drafts: Annotated[Optional[bool], typer.Option("--drafts/--no-drafts", help="Include draft posts")] = None,
    future: Annotated[Optional[bool], typer.Option("--future/--no-future", help="Include future-dated posts")] = None,
    ):
    """Render committed posts to static HTML."""
    settings = _settings(overrides={"output_dir": out, "build_drafts": drafts, "build_future": future})
    _render(settings, _engine(settings))


def build_cmd(
    drafts: Annotated[bool, typer.Option("--drafts", help="Include draft posts")] = False,
    future: Annotated[bool, typer.Option("--future", help="Include future-dated posts")] = False,
    clean: Annotated[bool, typer.Option("--clean", help="Remove the output directory first")] = False,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="Site base URL")] = None,
    content: Annotated[Optional[str], typer.Option("--content-dir", help="Content root")] = None,
    ):
    """Run the full pipeline: extract -> commit -> render."""
    settings = _settings(overrides={
        "build_drafts": drafts or None, "build_future": future or None, "clean_output": clean or None,
        "output_dir": out, "base_url": base_url, "content_dir": content,
    })
    _build(settings)


def list_cmd(
    section: Annotated[Optional[str], typer.Option("--section", help="Only posts in this section")] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Only posts with this tag")] = None,
    category: Annotated[Optional[str], typer.Option("--category", help="Only posts in this category")] = None,
    drafts: Annotated[bool, typer.Option("--drafts", help="Include drafts")] = False,
    ):
    """List committed posts, newest first."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        sections = list_sections(session)
        if section is not None and section not in sections:
            _fail(f"Unknown section '{section}'. Known: {', '.join(s or '(root)' for s in sections) or 'none'}")
        if tag:
            posts = get_by_term(session, TaxonomyEnum.tags, tag)
        elif category:
            posts = get_by_term(session, TaxonomyEnum.categories, category)
        elif section is not None:
            posts = get_by_section(session, section)
        else:
            posts = sort_posts(get_all_posts(session))
        if section is not None:
            posts = [p for p in posts if p.section == section]
        if not drafts:
            posts = [p for p in posts if not p.draft]
        rows = [
            (p.date.strftime('%Y-%m-%d') if p.date else '----------', p.url, p.title, p.draft)
            for p in posts
        ]
    if not rows:
        typer.echo("No posts found.")
        raise typer.Exit(1)
    for date, url, title, draft in rows:
        typer.echo(f"{date}  {url}  {title}{'  [draft]' if draft else ''}")


def terms_cmd(
    taxonomy: Annotated[TaxonomyEnum, typer.Argument(help="Taxonomy to list")],
    ):
    """List terms of a taxonomy with post counts."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        terms = list_terms(session, taxonomy)
    if not terms:
        typer.echo(f"No {taxonomy.value} found.")
        raise typer.Exit(1)
    for term, count in terms:
        typer.echo(f"{term} ({count})")


def history_cmd(
    slug: Annotated[str, typer.Argument(help="Post slug")],
    ):
    """Show stored versions of a post with line changes against the previous snapshot."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        post = get_by_slug(session, slug)
        if post is None:
            _fail(f"No post with slug '{slug}'")
        rows = [(f"v{v.version_num}", v.created_at, v.hash, v.source) for v in list_versions(session, post.id)]
        rows.append(("current", post.updated_at, post.hash, post.source))
    previous = None
    for label, created_at, digest, source in rows:
        line = f"{label:<8} {created_at:%Y-%m-%d %H:%M:%S}  {digest[:12]}"
        if previous is not None:
            stats = diff_summary(previous, source)
            line += f"  +{stats['added']} -{stats['deleted']}"
        typer.echo(line)
        previous = source


def diff_cmd(
    slug: Annotated[str, typer.Argument(help="Post slug")],
    from_num: Annotated[int, typer.Argument(help="Version to diff from")],
    to_num: Annotated[Optional[int], typer.Argument(help="Version to diff to; defaults to current")] = None,
    ):
    """Show a unified diff between versions of a post."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        post = get_by_slug(session, slug)
        if post is None:
            _fail(f"No post with slug '{slug}'")
        try:
            lines = diff_versions(session, post, from_num, to_num)
        except ValueError as e:
            _fail(str(e))
    if not lines:
        typer.echo("No differences.")
        return
    typer.echo(''.join(lines), nl=False)


def revert_cmd(
    slug: Annotated[str, typer.Argument(help="Post slug")],
    version_num: Annotated[int, typer.Argument(help="Version to restore")],
    ):
    """Restore a stored version as the current source and rewrite the post file."""
    settings = _settings()
    engine = _engine(settings)
    try:
        target, status = run_revert(engine, settings, slug, version_num)
    except ValueError as e:
        _fail(str(e))
    typer.echo(f"Reverted {slug} to version {version_num} ({status}); wrote {target}")


def check_cmd(
    strict: Annotated[bool, typer.Option("--strict", help="Fail when draft content is found")] = False,
    ):
    """Validate front matter of every post and report drafts."""
    settings = _settings()
    root = Path(settings.content_dir)
    if not root.is_dir():
        _fail(f"Content directory not found: {root}")

    drafts, errors = [], []
    for p in discover_files(root):
        try:
            staged = extract_post(parse_file(p, root, settings.parser_config), settings.summary_length)
        except ValueError as e:
            errors.append((p, e))
            continue
        if staged.draft:
            drafts.append(p)

    for p, e in errors:
        typer.echo(f"Invalid: {p}: {e}", err=True)
    if drafts:
        typer.echo("Draft content found")
        for p in drafts:
            typer.echo(f"  {p}")
    else:
        typer.echo("No draft content found")
    if errors or (strict and drafts):
        raise typer.Exit(1)


def serve_cmd(
    port: Annotated[Optional[int], typer.Option("--port", help="Site port")] = None,
    metrics_port: Annotated[Optional[int], typer.Option("--metrics-port", help="Metrics/health port")] = None,
    web_root: Annotated[Optional[str], typer.Option("--web-root", help="Directory to serve")] = None,
    no_memory: Annotated[bool, typer.Option("--no-memory", help="Serve from disk instead of memory")] = False,
    build: Annotated[bool, typer.Option("--build", help="Build the site before serving")] = False,
    ):
    """Serve the generated site with metrics, health, and version endpoints."""
    settings = _settings(overrides={
        "port": port, "metrics_port": metrics_port, "web_root": web_root,
        "use_memory": False if no_memory else None,
    })
    if settings.debug:
        setup_logging(True)
    if build:
        _build(settings)
    try:
        serve(settings)
    except FileNotFoundError as e:
        _fail(str(e))


def version_cmd():
    """Print version, git commit, and build time."""
    info = get_version_info()
    typer.echo(f"Version: {info.version}")
    typer.echo(f"Git Commit: {info.git_commit}")
    typer.echo(f"Build Time: {info.build_time}")
