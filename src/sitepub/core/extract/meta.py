"""Front matter normalization: dates, term lists, permalinks, summaries, and word counts"""

import math
from datetime import date, datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Optional

from sitepub.core.utils.tokens import children_text, inline_text


MORE_MARKER = '<!--more-->'
WORDS_PER_MINUTE = 213
_TRUE = {'true', 'yes', 'on', '1'}
_FALSE = {'false', 'no', 'off', '0', ''}


def normalize_date(value: Any) -> Optional[datetime]:
    """Coerce a front matter date to a naive UTC datetime; None when unset.

    Accepts datetime, date (midnight), and ISO-8601 strings. Raises ValueError otherwise.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid date {value!r}: {e}") from e
    else:
        raise ValueError(f"Invalid date {value!r}: expected a date or ISO-8601 string")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def as_term_list(value: Any, field: str) -> list[str]:
    """A bare string becomes a one-element list; empty entries and duplicates are dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid {field}: expected a list, got {type(value).__name__}")
    return list(dict.fromkeys(str(v).strip() for v in value if str(v).strip()))


def as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Invalid {field}: expected true/false, got {value!r}")


def section_of(path: str) -> str:
    """Top-level directory of a content-relative path; '' for root-level pages."""
    parts = PurePosixPath(path).parts
    return parts[0] if len(parts) > 1 else ''


def normalize_url(url: str) -> str:
    """Force a leading slash, and a trailing one unless the URL names a file."""
    url = '/' + url.strip().strip('/')
    if url == '/':
        return url
    return url if PurePosixPath(url).suffix else url + '/'


def permalink(section: str, slug: str, url: str = '') -> str:
    """Explicit url wins; else '/<section>/<slug>/' or '/<slug>/' for root pages."""
    if url:
        return normalize_url(url)
    return f"/{section}/{slug}/" if section else f"/{slug}/"


def _text_before_more(inline) -> str:
    children = []
    for child in inline.children or []:
        if child.type == 'html_inline' and MORE_MARKER in child.content:
            break
        children.append(child)
    return children_text(children)


def _text_runs(tokens: list, stop_at_more: bool):
    """Yield plain text of each paragraph; stop at a <!--more--> marker when asked."""
    for i, tok in enumerate(tokens):
        if stop_at_more and tok.type == 'html_block' and MORE_MARKER in tok.content:
            return
        if tok.type != 'paragraph_open' or i + 1 >= len(tokens):
            continue
        inline = tokens[i + 1]
        if stop_at_more and MORE_MARKER in inline.content:
            yield _text_before_more(inline)
            return
        yield inline_text(inline)


def has_more_marker(tokens: list) -> bool:
    return any(MORE_MARKER in tok.content for tok in tokens if tok.type in ('html_block', 'inline'))


def summarize(tokens: list, length: int) -> str:
    """Text before <!--more--> when present, else the leading prose cut to length words."""
    if has_more_marker(tokens):
        return ' '.join(' '.join(_text_runs(tokens, stop_at_more=True)).split())
    words: list[str] = []
    for run in _text_runs(tokens, stop_at_more=False):
        words.extend(run.split())
        if len(words) > length:
            return ' '.join(words[:length]) + '…'
    return ' '.join(words)


def word_count(tokens: list) -> int:
    """Words in prose (paragraphs, headings, list items, quotes); code is excluded."""
    return sum(len(inline_text(tok).split()) for tok in tokens if tok.type == 'inline')


def reading_time(words: int) -> int:
    """Minutes at 213 words per minute, never less than one."""
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
