"""Slug generation for post identifiers, anchors, and taxonomy terms"""

import re


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def humanize(stem: str) -> str:
    """Turn a filename stem like 'kvm-internals_part-1' into 'Kvm Internals Part 1'."""
    words = re.split(r'[-_\s]+', stem.strip())
    return ' '.join(w[:1].upper() + w[1:] for w in words if w)
