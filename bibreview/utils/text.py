"""Text cleanup for content scraped from publisher pages."""

import re

from bs4 import BeautifulSoup

# First paragraph block of a page, tags included
PARAGRAPH_RE = re.compile(r"<p[\s>].*?</p>", re.DOTALL | re.IGNORECASE)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return " ".join(text.split()).strip()


def strip_markup(fragment: str) -> str:
    """Return the plain text of an HTML fragment.

    MathML blocks are dropped and entities are decoded.
    """
    soup = BeautifulSoup(fragment, "html.parser")
    for math_tag in soup.find_all(["math", "mml:math"]):
        math_tag.decompose()
    return normalize_whitespace(soup.get_text(" "))


def first_paragraph(page: str) -> str:
    """Plain text of the first ``<p>...</p>`` block, or "" when there is none."""
    match = PARAGRAPH_RE.search(page)
    if match is None:
        return ""
    return strip_markup(match.group(0))


def clean_abstract(text: str) -> str:
    """Clean abstract text for storage in a BibTeX field.

    1. Strip a leading "Abstract" / "ABSTRACT" label.
    2. Drop braces, which would unbalance the field delimiters.
    3. Normalise whitespace.
    """
    if not text:
        return text
    text = re.sub(r"^\s*abstract[\s.:;—–-]*", "", text, flags=re.IGNORECASE)
    text = text.replace("{", "").replace("}", "")
    return normalize_whitespace(text)
