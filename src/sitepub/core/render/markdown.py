"""Markdown body to HTML with anchored headings"""

from sitepub.core.extract.blocks import TOC_LEVELS
from sitepub.core.models import StagedHeading
from sitepub.core.parse import make_parser
from sitepub.core.utils.tokens import anchor_headings


def render_markdown(body: str, parser_config: str = 'gfm-like') -> tuple[str, list[StagedHeading]]:
    """Return (html, toc) for a post body.

    Raw HTML passes through and fenced code keeps its language-<lang> class.
    """
    md = make_parser(parser_config)
    tokens = md.parse(body)
    toc = [
        StagedHeading(level=level, text=text, anchor=anchor)
        for level, text, anchor in anchor_headings(tokens)
        if level in TOC_LEVELS
    ]
    return md.renderer.render(tokens, md.options, {}), toc
