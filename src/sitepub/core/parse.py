"""File discovery, front matter extraction, and markdown-it tokenization"""

import re
import tomllib
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from sitepub.core.models import ParsedPost
from sitepub.core.utils.hashing import sha256
from sitepub.core.utils.slug import slugify


YAML_FRONTMATTER_RE = re.compile(r'^---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|$)', re.DOTALL)
TOML_FRONTMATTER_RE = re.compile(r'^\+\+\+[ \t]*\r?\n(?:(.*?)\r?\n)?\+\+\+[ \t]*(?:\r?\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.markdown'}


def make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _load_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e


def _load_toml(text: str) -> Any:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML frontmatter: {e}") from e


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body); '---' fences hold YAML, '+++' fences hold TOML."""
    text = text.removeprefix('\ufeff')
    for pattern, loader, kind in (
        (YAML_FRONTMATTER_RE, _load_yaml, "YAML"),
        (TOML_FRONTMATTER_RE, _load_toml, "TOML"),
    ):
        m = pattern.match(text)
        if not m:
            continue
        fm = loader(m.group(1) or '') or {}
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid {kind} frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def _is_content_file(path: Path) -> bool:
    return path.suffix.lower() in MD_EXTENSIONS and not path.name.startswith('_')


def discover_files(path: Path) -> list[Path]:
    """Return sorted post files under path, or [path] if a single file.

    Names starting with '_' (section indexes, archetypes) are never posts.
    """
    if path.is_file():
        return [path] if _is_content_file(path) else []
    return sorted(p for p in path.rglob('*') if p.is_file() and _is_content_file(p))


def relative_path(path: Path, root: Path) -> Path:
    """path relative to root when it lives under it, else the path as given."""
    try:
        return path.resolve().relative_to(root.resolve())
    except ValueError:
        return path


def parse_file(path: Path, root: Path = Path('.'), parser_config: str = 'gfm-like') -> ParsedPost:
    """Parse a single markdown file into a ParsedPost with token stream."""
    raw = path.read_text(encoding='utf-8')
    return parse_source(raw, relative_path(path, root), parser_config)


def parse_source(raw: str, path: Path, parser_config: str = 'gfm-like') -> ParsedPost:
    """Parse markdown text as if read from path, already relative to the content root."""
    frontmatter, body = split_frontmatter(raw)
    tokens = make_parser(parser_config).parse(body)
    slug = str(frontmatter.get('slug') or '') or slugify(path.stem)
    return ParsedPost(
        path=path,
        slug=slug,
        raw=raw,
        body=body,
        hash=sha256(raw),
        frontmatter=frontmatter,
        tokens=tokens,
    )
