"""Convert a ParsedPost into a normalized StagedPost"""

from sitepub.core.extract.blocks import extract_code_blocks, extract_toc
from sitepub.core.extract.meta import (
    as_bool, as_term_list, normalize_date, permalink, reading_time,
    section_of, summarize, word_count,
)
from sitepub.core.models import ParsedPost, StagedPost
from sitepub.core.utils.slug import humanize


def extract_post(parsed: ParsedPost, summary_length: int = 70) -> StagedPost:
    """Normalize front matter and derive summary, counts, toc, and code blocks."""
    fm = parsed.frontmatter
    path = parsed.path.as_posix()
    section = section_of(path)
    date = normalize_date(fm.get('date'))
    words = word_count(parsed.tokens)

    return StagedPost(
        slug=parsed.slug,
        path=path,
        section=section,
        source=parsed.raw,
        body=parsed.body,
        hash=parsed.hash,
        frontmatter=fm,
        title=str(fm.get('title') or humanize(parsed.path.stem)),
        date=date,
        lastmod=normalize_date(fm.get('lastmod')) or date,
        draft=as_bool(fm.get('draft'), 'draft'),
        author=str(fm.get('author') or ''),
        description=str(fm.get('description') or ''),
        url=permalink(section, parsed.slug, str(fm.get('url') or '')),
        summary=str(fm.get('summary') or summarize(parsed.tokens, summary_length)),
        tags=as_term_list(fm.get('tags'), 'tags'),
        categories=as_term_list(fm.get('categories'), 'categories'),
        word_count=words,
        reading_time=reading_time(words),
        toc=extract_toc(parsed.tokens),
        code_blocks=extract_code_blocks(parsed.tokens),
    )
