"""Plain-text helpers: word-boundary pruning, HTML stripping, reading time"""

import math
import re
from html.parser import HTMLParser


PRUNE_SUFFIX = "..."
AVG_WPM = 265
WORD_RE = re.compile(r"[^\W_]+(?:['’][^\W_]+)*")
_TRAILING_NON_WORD_RE = re.compile(r"[\W_]+$")
_LAST_GAP_RE = re.compile(r"^(.*[\W_])[^\W_]*$", re.DOTALL)
_WORD_CHAR_RE = re.compile(r"[^\W_]")


def prune(text: str, length: int, suffix: str = PRUNE_SUFFIX) -> str:
    """Truncate text to at most length chars (suffix included) without splitting a word."""
    if len(text) <= length:
        return text
    budget = length - len(suffix)
    if budget < 0:
        return ""

    cut = text[:budget]
    if cut and _WORD_CHAR_RE.match(cut[-1]) and _WORD_CHAR_RE.match(text[budget]):
        # Drop the word the cut landed in.
        m = _LAST_GAP_RE.match(cut)
        cut = m.group(1) if m else ""
    cut = _TRAILING_NON_WORD_RE.sub("", cut)
    return cut + suffix


class _TextExtractor(HTMLParser):
    """Collect character data, dropping every tag and the contents of non-text tags."""

    SKIP_TAGS = {"script", "style", "textarea", "option", "noscript"}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in self.SKIP_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in self.SKIP_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if not self._skip_depth:
            self.parts.append(data)


def html_to_text(html: str) -> str:
    """Strip all markup from html, returning decoded text content."""
    extractor = _TextExtractor()
    extractor.feed(html)
    extractor.close()
    return "".join(extractor.parts)


def count_words(text: str) -> int:
    """Count Unicode words in text; apostrophes join contractions."""
    return len(WORD_RE.findall(text))


def time_to_read(html: str, words_per_minute: int = AVG_WPM) -> int:
    """Estimated minutes to read html at words_per_minute, never less than 1."""
    words = count_words(html_to_text(html))
    minutes = math.floor(words / words_per_minute + 0.5)
    return max(minutes, 1)
