"""Shared markdown-it token utilities"""

from sitepub.core.utils.slug import slugify


def heading_level(token) -> int | None:
    """Return the heading level (1-6) for a heading_open token, else None."""
    if token.type == 'heading_open' and token.tag and token.tag[0] == 'h' and token.tag[1:].isdigit():
        return int(token.tag[1:])
    return None


def children_text(children: list) -> str:
    """Plain text of inline children: text, code spans, and image alt text; markup dropped."""
    parts = []
    for child in children:
        if child.type in ('text', 'code_inline', 'image'):
            parts.append(child.content)
        elif child.type in ('softbreak', 'hardbreak'):
            parts.append(' ')
    return ''.join(parts)


def inline_text(token) -> str:
    """Plain text of an inline token."""
    if not token.children:
        return token.content
    return children_text(token.children)


def anchor_headings(tokens: list) -> list[tuple[int, str, str]]:
    """Give every heading_open token a unique slug id; return (level, text, anchor) per heading.

    Duplicate slugs get the lowest free numeric suffix in document order:
    'intro', 'intro-1', ... Suffixed anchors never repeat a literal heading slug.
    """
    used: set[str] = set()
    suffixes: dict[str, int] = {}
    headings = []
    for i, tok in enumerate(tokens):
        level = heading_level(tok)
        if level is None:
            continue
        text = inline_text(tokens[i + 1]) if i + 1 < len(tokens) else ''
        base = tok.attrGet('id') or slugify(text) or 'section'
        anchor = base
        n = suffixes.get(base, 0)
        while anchor in used:
            n += 1
            anchor = f"{base}-{n}"
        suffixes[base] = n
        used.add(anchor)
        tok.attrSet('id', anchor)
        headings.append((level, text, anchor))
    return headings
