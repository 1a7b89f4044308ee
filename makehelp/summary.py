"""Extract a one-sentence plain-text summary from target documentation."""

from __future__ import annotations

import re
from typing import Sequence

# First sentence ending in .!? followed by whitespace or end of text. Ellipses
# and dotted tokens such as IP addresses or version numbers do not end it.
_SENTENCE = re.compile(r"^((?:[^.!?]|\.\.\.|\.[^\s])+[.?!])(\s|$)")
_HEADER = re.compile(r"(?m)^#+\s+")
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC = re.compile(r"\*([^*]+)\*")
_BOLD_UNDER = re.compile(r"__([^_]+)__")
_ITALIC_UNDER = re.compile(r"(?<![A-Za-z0-9])_([^_]+)_(?![A-Za-z0-9])")
_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


def extract_summary(documentation: Sequence[str]) -> str:
    """Return the first sentence of the documentation with markup removed."""
    if not documentation:
        return ""
    text = " ".join(_HEADER.sub("", line) for line in documentation)
    text = strip_markdown(text)
    text = _HTML_TAG.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return first_sentence(text)


def strip_markdown(text: str) -> str:
    # Bold before italic so `**x**` is not read as two italics.
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _BOLD_UNDER.sub(r"\1", text)
    text = _ITALIC_UNDER.sub(r"\1", text)
    text = _CODE.sub(r"\1", text)
    return _LINK.sub(r"\1", text)


def first_sentence(text: str) -> str:
    match = _SENTENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


__all__ = ["extract_summary", "first_sentence", "strip_markdown"]
