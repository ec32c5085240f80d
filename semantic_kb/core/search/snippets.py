"""
Result snippet generation.

Dependencies: re (stdlib)
System role: Short previews of chunk content for search responses
"""

import re

_TERM_PATTERN = re.compile(r"\w+")
ELLIPSIS = "..."


def make_snippet(content: str, query: str, max_length: int = 200) -> str:
    """
    Excerpt of ``content`` around the first query term it contains.

    Falls back to the opening of the content when no term matches.
    Ellipses mark trimmed edges.
    """
    text = " ".join(content.split())
    if len(text) <= max_length:
        return text

    lowered = text.lower()
    position = -1
    for term in _TERM_PATTERN.findall(query.lower()):
        if len(term) < 3:
            continue
        position = lowered.find(term)
        if position >= 0:
            break

    if position < 0:
        return text[:max_length].rstrip() + ELLIPSIS

    start = max(position - max_length // 3, 0)
    end = min(start + max_length, len(text))
    start = max(end - max_length, 0)
    excerpt = text[start:end].strip()
    if start > 0:
        excerpt = ELLIPSIS + excerpt
    if end < len(text):
        excerpt = excerpt + ELLIPSIS
    return excerpt
