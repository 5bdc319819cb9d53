"""
Rich text assembly: inline HTML → ordered list of RichTextRun.

The assembler walks the parsed tree depth-first and carries the current
inline style (annotations + link) down to every text node, so nested
markup such as <strong><em>x</em></strong> or <a><code>x</code></a>
produces one run with all of its styles combined.

Pipeline position: used by the classifier for paragraphs and list items,
and by the operation table converter for description segments.
Input:  an HTML fragment string or an already parsed element
Output: list[RichTextRun] in document order
"""

import re
from typing import NamedTuple, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from .schemas import PLAIN, Annotations, RichTextRun


# Inline tags and the annotation each one switches on
TAG_ANNOTATIONS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "code": "code",
    "kbd": "code",
    "samp": "code",
    "tt": "code",
    "s": "strikethrough",
    "strike": "strikethrough",
    "del": "strikethrough",
    "u": "underline",
    "ins": "underline",
}

# Subtrees that never contribute visible text
SKIPPED_TAGS = {"script", "style", "noscript", "template"}

# NavigableString subclasses that are markup, not text
NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction, CData)

WHITESPACE_RE = re.compile(r"\s+")


class _InlineState(NamedTuple):
    annotations: Annotations
    link: Optional[str]


class RichTextAssembler:
    """Converts inline markup into rich text runs."""

    def __init__(self, collapse_whitespace: bool = True, base_url: Optional[str] = None):
        """
        Args:
            collapse_whitespace: Collapse whitespace runs in text nodes to a
                single space, as a browser renders them. Disable when the
                caller has already turned line breaks into newlines.
            base_url: Base for resolving relative link targets.
        """
        self.collapse_whitespace = collapse_whitespace
        self.base_url = base_url

    def assemble(self, fragment: str) -> list[RichTextRun]:
        """Parse an HTML fragment and assemble its runs."""
        if not fragment:
            return []
        soup = BeautifulSoup(fragment, "html.parser")
        return self.assemble_element(soup)

    def assemble_element(self, element: Tag) -> list[RichTextRun]:
        """Assemble the runs of an element's children."""
        runs: list[RichTextRun] = []
        self._walk(element, _InlineState(PLAIN, None), runs)
        return runs

    def _walk(self, node: Tag, state: _InlineState, runs: list[RichTextRun]) -> None:
        for child in node.children:
            if isinstance(child, NavigableString):
                if isinstance(child, NON_TEXT_STRINGS):
                    continue
                self._emit(runs, str(child), state)
            elif isinstance(child, Tag):
                if child.name == "br":
                    self._emit(runs, "\n", state, raw=True)
                elif child.name in SKIPPED_TAGS:
                    continue
                else:
                    self._walk(child, self._enter(child, state), runs)

    def _enter(self, tag: Tag, state: _InlineState) -> _InlineState:
        annotations, link = state
        flag = TAG_ANNOTATIONS.get(tag.name)
        if flag:
            annotations = annotations.with_flag(flag)
        if tag.name == "a":
            href = tag.get("href")
            if href:
                link = urljoin(self.base_url, href) if self.base_url else href
        return _InlineState(annotations, link)

    def _emit(self, runs: list[RichTextRun], text: str, state: _InlineState, raw: bool = False) -> None:
        if self.collapse_whitespace and not raw:
            text = WHITESPACE_RE.sub(" ", text)
            # One space between words, even across element boundaries
            if text.startswith(" ") and runs and runs[-1].content.endswith((" ", "\n")):
                text = text[1:]
        if not text:
            return

        run = RichTextRun(content=text, annotations=state.annotations, link=state.link)
        if runs and runs[-1].same_style(run):
            runs[-1] = runs[-1].model_copy(update={"content": runs[-1].content + text})
        else:
            runs.append(run)


def strip_runs(runs: list[RichTextRun]) -> list[RichTextRun]:
    """
    Trim leading whitespace of the first run and trailing whitespace of the
    last one, dropping runs that become empty.
    """
    stripped = list(runs)

    while stripped:
        content = stripped[0].content.lstrip()
        if content:
            stripped[0] = stripped[0].model_copy(update={"content": content})
            break
        stripped.pop(0)

    while stripped:
        content = stripped[-1].content.rstrip()
        if content:
            stripped[-1] = stripped[-1].model_copy(update={"content": content})
            break
        stripped.pop()

    return stripped


def assemble(fragment: str, collapse_whitespace: bool = True,
             base_url: Optional[str] = None) -> list[RichTextRun]:
    """Convenience function to assemble runs from an HTML fragment."""
    return RichTextAssembler(collapse_whitespace, base_url).assemble(fragment)


def assemble_element(element: Tag, collapse_whitespace: bool = True,
                     base_url: Optional[str] = None) -> list[RichTextRun]:
    """Convenience function to assemble runs from a parsed element."""
    return RichTextAssembler(collapse_whitespace, base_url).assemble_element(element)
