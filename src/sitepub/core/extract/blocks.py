"""Token walks collecting embedded code snippets and table-of-contents headings"""

from sitepub.core.models import StagedCodeBlock, StagedHeading
from sitepub.core.utils.tokens import anchor_headings


CODE_TOKENS = {'fence', 'code_block'}
TOC_LEVELS = (2, 3)


def _language(token) -> str:
    """First word of a fence info string ('go title=main.go' -> 'go'); '' when absent."""
    info = (token.info or '').strip()
    return info.split(maxsplit=1)[0].strip('{}.') if info else ''


def extract_code_blocks(tokens: list) -> list[StagedCodeBlock]:
    """Return fenced and indented code blocks in document order."""
    blocks = []
    for tok in tokens:
        if tok.type not in CODE_TOKENS:
            continue
        blocks.append(StagedCodeBlock(
            language=_language(tok) if tok.type == 'fence' else '',
            content=tok.content.rstrip('\n'),
            position=len(blocks),
        ))
    return blocks


def extract_toc(tokens: list) -> list[StagedHeading]:
    """Return h2/h3 headings with the same anchors the renderer assigns."""
    return [
        StagedHeading(level=level, text=text, anchor=anchor)
        for level, text, anchor in anchor_headings(tokens)
        if level in TOC_LEVELS
    ]
