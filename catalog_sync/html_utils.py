"""HTML-to-text helpers for product descriptions."""

import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

__all__ = ["strip_html"]


def strip_html(html: str) -> str:
    """Drop markup from a short description, keeping its text.

    Tags are removed without inserting separators, entities are decoded.
    Returns an empty string for empty input.
    """
    if not html:
        return ""
    if "<" not in html and "&" not in html:
        return html

    with warnings.catch_warnings():
        # Short plain strings trip bs4's "looks like a URL/filename" heuristic
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(html, "html.parser")
    return soup.get_text()
