"""Sanitisation helpers.

Listing titles and descriptions are free text shown to other users, so
HTML tags are stripped and whitespace trimmed before they are stored.
"""
import re

TAG_RE = re.compile(r"<[^>]+>")


def strip_tags(text: str) -> str:
    """Remove HTML tags from the given string and trim whitespace.

    Parameters
    ----------
    text: str
        The input string that may contain HTML tags.

    Returns
    -------
    str
        The cleaned string, empty when ``text`` is empty.
    """
    if not text:
        return ""
    no_tags = TAG_RE.sub("", text)
    return no_tags.strip()
