"""
Preprocessor: raw manual HTML → parsed document → top-level content elements.

String-level cleanup runs first (line endings, NULL and control
characters), then the document is parsed and scripts, styles and comments
are removed so that only content remains.

Design principle: NEVER FAIL on bad HTML. An unparseable or empty document
yields no content elements and a warning.

Pipeline position: Stage 1 (Preprocessor → Segmenter → Classifier → Publisher).
Input:  raw HTML string
Output: BeautifulSoup document, and the children of the content root
"""

import re

from bs4 import BeautifulSoup, Comment, NavigableString

from .logger import get_module_logger

logger = get_module_logger("preprocessor")

DEFAULT_CONTENT_SELECTOR = ".Content-inner"

# A newline followed by indentation, as produced by the site's templates
INDENTED_NEWLINE_RE = re.compile(r"\n\s+")

CONTROL_CHARS = "".join(chr(c) for c in range(32) if c not in (9, 10, 13))


def collapse_indentation(html: str) -> str:
    """Replace every newline + indentation run with a single newline."""
    return INDENTED_NEWLINE_RE.sub("\n", html)


class Preprocessor:
    """
    Rule-based HTML preprocessor.
    """

    # Elements that never hold manual content
    REMOVE_ELEMENTS = ['script', 'style', 'noscript', 'meta', 'link']

    def __init__(self, content_selector: str = DEFAULT_CONTENT_SELECTOR):
        """
        Args:
            content_selector: CSS selector of the element whose children are
                              the manual's top-level content
        """
        self.content_selector = content_selector

    def sanitize(self, html: str) -> tuple[str, list[str]]:
        """
        Fix the raw string before parsing.

        Returns:
            Tuple of (sanitized HTML, list of warnings)
        """
        warnings = []
        sanitized = html

        if '\x00' in sanitized:
            sanitized = sanitized.replace('\x00', '')
            warnings.append("Removed NULL bytes")

        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        if any(c in sanitized for c in CONTROL_CHARS):
            sanitized = sanitized.translate(str.maketrans('', '', CONTROL_CHARS))
            warnings.append("Removed control characters")

        return sanitized, warnings

    def parse(self, html: str) -> BeautifulSoup:
        """Sanitize and parse a full document, stripping non-content nodes."""
        sanitized, warnings = self.sanitize(html)
        for warning in warnings:
            logger.debug(warning)

        # html5lib follows the browser parsing algorithm; html.parser is the
        # fallback that is always available
        try:
            soup = BeautifulSoup(sanitized, 'html5lib')
        except Exception as e:
            logger.warning(f"html5lib parsing failed, using html.parser: {e}")
            soup = BeautifulSoup(sanitized, 'html.parser')

        removed = self._remove_non_content(soup)
        if removed:
            logger.debug(f"Removed {removed} non-content nodes")
        return soup

    def content_elements(self, soup: BeautifulSoup) -> list:
        """
        Top-level content elements in document order.

        Returns an empty list when the content root is missing.
        """
        root = soup.select_one(self.content_selector)
        if root is None:
            logger.warning(f"Content root '{self.content_selector}' not found")
            return []

        return [
            child for child in root.children
            if not (isinstance(child, NavigableString) and not child.strip())
        ]

    def process(self, html: str) -> list:
        """Parse a document and return its top-level content elements."""
        if not html or not html.strip():
            logger.warning("Empty document")
            return []
        return self.content_elements(self.parse(html))

    def _remove_non_content(self, soup: BeautifulSoup) -> int:
        count = 0
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()
            count += 1
        for element in soup.find_all(self.REMOVE_ELEMENTS):
            element.decompose()
            count += 1
        return count


def preprocess(html: str, content_selector: str = DEFAULT_CONTENT_SELECTOR) -> list:
    """Convenience function to get the top-level content elements of a document."""
    return Preprocessor(content_selector).process(html)
