"""Plain-text projection of Anki field markup.

This is a lossy tag table, not an HTML parser: recognized tags are turned
into newlines, bullets or lightweight emphasis markers, everything else is
dropped. Broken markup is over-stripped rather than reported.
"""

import html
import re

# (pattern, replacement) applied in order before the catch-all tag removal
TAG_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p\s*>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</div\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"<li(?:\s[^>]*)?>", re.IGNORECASE), "• "),
    (re.compile(r"</li\s*>", re.IGNORECASE), "\n"),
    (re.compile(r"</?(?:b|strong)(?:\s[^>]*)?>", re.IGNORECASE), "**"),
    (re.compile(r"</?(?:i|em)(?:\s[^>]*)?>", re.IGNORECASE), "*"),
    (re.compile(r"</?u(?:\s[^>]*)?>", re.IGNORECASE), "_"),
)

ANY_TAG = re.compile(r"<[^>]+>")
EXCESS_NEWLINES = re.compile(r"\n{3,}")

IMAGE_SOURCE = re.compile(r"""<img[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def html_to_text(markup: str) -> str:
    """Project field markup onto readable text.

    Args:
        markup: Raw field HTML.

    Returns:
        Text with line structure and emphasis markers preserved.
    """
    if not markup:
        return ""

    text = markup
    for pattern, replacement in TAG_REPLACEMENTS:
        text = pattern.sub(replacement, text)

    text = ANY_TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = text.replace("\r\n", "\n")
    text = EXCESS_NEWLINES.sub("\n\n", text)

    return text.strip()


def extract_media_references(markup: str) -> list[str]:
    """Return image file names referenced by ``<img src=...>`` tags, in order."""
    if not markup:
        return []
    return [html.unescape(match) for match in IMAGE_SOURCE.findall(markup)]
