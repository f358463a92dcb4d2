"""
Reduce rich-text homework content to plain text.

Homework exports may embed WPF FlowDocument markup in the Content field.
Extraction order:
1. no markup -> unchanged
2. FlowDocument with a Run in the preferred language -> that run's text
3. FlowDocument with any Runs -> their texts joined by a space
4. otherwise a BeautifulSoup parse, returning the text content
5. if the parser is unavailable or raises, iterative regex tag stripping

The reduction is repeated until the text stops changing, so sanitizing
already-sanitized text is a no-op.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, FeatureNotFound

from .logger import get_logger

logger = get_logger()

FLOW_DOCUMENT_MARKER = re.compile(r"<FlowDocument", re.IGNORECASE)
RUN_PATTERN = re.compile(r"<Run[^>]*>([^<]+)</Run>", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]*>")

# Upper bound on reduction passes before falling back to dropping angle brackets.
MAX_PASSES = 10


def _has_markup(text: str) -> bool:
    return "<" in text and ">" in text


def strip_tags(text: str) -> str:
    """Remove tag-like substrings until a pass changes nothing, then trim."""
    previous = None
    while previous != text:
        previous = text
        text = TAG_PATTERN.sub("", text)
    return text.strip()


class ContentSanitizer:
    """
    Plain-text extractor for homework content.

    Args:
        language: xml:lang value of the preferred FlowDocument Run
        parser: BeautifulSoup tree builder used for the structural parse
    """

    def __init__(self, language: str = "zh-cn", parser: str = "html.parser"):
        self.language = language
        self.parser = parser
        self._language_run = re.compile(
            r'<Run[^>]*xml:lang="' + re.escape(language) + r'"[^>]*>([^<]+)</Run>',
            re.IGNORECASE,
        )

    def sanitize(self, content: Optional[str]) -> Optional[str]:
        if not content or not isinstance(content, str):
            return content

        text = content
        for _ in range(MAX_PASSES):
            reduced = self._reduce(text)
            if reduced == text:
                return text
            text = reduced

        logger.debug("Content did not settle; dropping remaining angle brackets", length=len(text))
        return strip_tags(text).replace("<", "").replace(">", "")

    def _reduce(self, text: str) -> str:
        if not _has_markup(text):
            return text

        if FLOW_DOCUMENT_MARKER.search(text):
            match = self._language_run.search(text)
            if match:
                return match.group(1).strip()

            runs = [m.strip() for m in RUN_PATTERN.findall(text)]
            runs = [r for r in runs if r]
            if runs:
                return " ".join(runs)

        try:
            return self._structural_text(text)
        except FeatureNotFound:
            logger.warning("Markup parser unavailable, using regex fallback", parser=self.parser)
        except Exception as e:
            logger.debug("Markup parse failed, using regex fallback", error=str(e))
        return strip_tags(text)

    def _structural_text(self, text: str) -> str:
        soup = BeautifulSoup(text, self.parser)
        return soup.get_text().strip()


_default_sanitizer = ContentSanitizer()


def sanitize_content(content: Optional[str]) -> Optional[str]:
    """Sanitize with the default (zh-cn, html.parser) sanitizer."""
    return _default_sanitizer.sanitize(content)
