"""Pipeline step functions: extract, commit, render, and revert orchestration"""

import logging
from datetime import datetime
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session

from sitepub.config import Settings
from sitepub.core.export import write_site
from sitepub.core.extract.extract import extract_post
from sitepub.core.models import StagedPost
from sitepub.core.parse import discover_files, parse_file, parse_source
from sitepub.core.render.templates import make_environment
from sitepub.core.site import build_site
from sitepub.core.utils.clock import utc_now
from sitepub.crud.posts import commit_post, delete_missing, get_by_slug, revert_to_version


logger = logging.getLogger(__name__)


def staging_name(staged: StagedPost) -> str:
    """'post/kvm.md' with slug 'kvm' stages as 'post--kvm.json'; root pages as '<slug>.json'."""
    return f"{staged.section}--{staged.slug}.json" if staged.section else f"{staged.slug}.json"


def clear_staging(staging_dir: Path) -> int:
    """Remove staged JSON left by a previous run. Returns count removed."""
    if not staging_dir.exists():
        return 0
    stale = list(staging_dir.glob('*.json'))
    for f in stale:
        f.unlink()
    return len(stale)


def run_extract(
    path: str,
    root: str,
    parser_config: str,
    staging_dir: Path,
    summary_length: int = 70,
    ) -> list[tuple[Path, Path]]:
    """Parse path and write StagedPost JSON to staging_dir. Returns (source_path, staging_file) pairs.

    Two posts mapping to the same staging file in one run raise RuntimeError naming both sources.
    """
    staging_dir.mkdir(parents=True, exist_ok=True)
    results = []
    staged_from: dict[str, Path] = {}
    for p in discover_files(Path(path)):
        try:
            parsed = parse_file(p, Path(root), parser_config)
            staged = extract_post(parsed, summary_length)
            name = staging_name(staged)
            if name in staged_from:
                raise ValueError(f"staging file {name} already written for {staged_from[name]}; "
                                 f"give one of them a distinct slug")
            staged_from[name] = p
            out_file = staging_dir / name
            out_file.write_text(staged.model_dump_json(indent=2), encoding='utf-8')
            results.append((p, out_file))
        except Exception as e:
            raise RuntimeError(f"Failed to extract {p}: {e}") from e
        logger.debug("Staged %s -> %s", p, out_file)
    return results


def run_commit(
    engine: Engine,
    max_versions: int,
    staging_dir: Path,
    prune: bool = False,
    ) -> tuple[dict[str, int], list[tuple[str, str]], list[str]]:
    """Read staged StagedPost JSON and commit to the database.

    Returns (counts, changes, removed): changes lists (status, slug) for
    created/updated posts; removed lists slugs deleted because prune was set
    and their path was not staged. Returns ({}, [], []) when staging_dir is empty
    and prune is off; with prune, empty staging removes every stored post.
    """
    files = sorted(staging_dir.glob('*.json')) if staging_dir.exists() else []
    if not files and not prune:
        return {}, [], []

    committed_at = utc_now()
    counts = {"created": 0, "updated": 0, "unchanged": 0}
    changes = []
    removed: list[str] = []
    with Session(engine) as session:
        paths = []
        for f in files:
            staged = StagedPost.model_validate_json(f.read_text(encoding='utf-8'))
            post, status = commit_post(session, staged, max_versions, committed_at)
            counts[status] += 1
            paths.append(staged.path)
            if status != 'unchanged':
                changes.append((status, post.slug))
        if prune:
            removed = delete_missing(session, paths)
        session.commit()
    logger.info("Committed %s; removed %d", counts, len(removed))
    return counts, changes, removed


def run_render(engine: Engine, settings: Settings, now: datetime | None = None) -> list[Path]:
    """Render all published posts in the store to settings.output_dir."""
    now = now or utc_now()
    env = make_environment(settings.base_url, settings.template_dir)
    with Session(engine) as session:
        site = build_site(session, settings, now)
        return write_site(
            site, env, Path(settings.output_dir),
            static_dir=Path(settings.static_dir), clean=settings.clean_output,
        )


def run_revert(engine: Engine, settings: Settings, slug: str, version_num: int) -> tuple[Path, str]:
    """Restore a stored version as the post's current source and rewrite its file.

    Returns (file_path, status). Raises ValueError for an unknown slug or version.
    """
    root = Path(settings.content_dir)
    with Session(engine) as session:
        post = get_by_slug(session, slug)
        if post is None:
            raise ValueError(f"No post with slug '{slug}'")
        target = root / post.path

        def stage(source: str) -> StagedPost:
            parsed = parse_source(source, Path(post.path), settings.parser_config)
            return extract_post(parsed, settings.summary_length)

        post, status = revert_to_version(session, post, version_num, stage, settings.max_versions, utc_now())
        source = post.source
        session.commit()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(source, encoding='utf-8')
    return target, status
