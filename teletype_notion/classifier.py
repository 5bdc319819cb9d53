"""
Block classifier.

Maps one top-level element of the manual to the blocks that represent it.
Dispatch is first-match-wins, in this order:

    h2 / h3          → heading (plain text)
    p                → paragraph (rich text)
    pre              → code block, language "plain text"
    ul               → one bulleted list item per <li>
    class "op-list"  → operation table converter

Anything else yields no blocks. That is logged at DEBUG, not treated as an error.
"""

import re
from typing import Optional

from bs4 import Tag

from .op_table import OperationTableConverter
from .rich_text import RichTextAssembler, strip_runs
from .schemas import (
    Block,
    BulletItemBlock,
    CodeBlock,
    HeadingBlock,
    ParagraphBlock,
    RichTextRun,
)
from .logger import get_module_logger

logger = get_module_logger("classifier")

HEADING_TYPES = {"h2": "heading_2", "h3": "heading_3"}

OP_LIST_CLASS = "op-list"

WHITESPACE_RE = re.compile(r"\s+")


class BlockClassifier:
    """Converts top-level elements into blocks."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        op_table: Optional[OperationTableConverter] = None
    ):
        self.assembler = RichTextAssembler(base_url=base_url)
        self.op_table = op_table or OperationTableConverter(base_url=base_url)

    def classify(self, element) -> list[Block]:
        """
        Convert one element into zero or more blocks.

        Args:
            element: A parsed node; strings and comments yield nothing

        Returns:
            Blocks in document order, empty if the element is not recognised
        """
        if not isinstance(element, Tag):
            return []

        name = element.name
        if name in HEADING_TYPES:
            return [self._heading(element)]
        if name == "p":
            return [self._paragraph(element)]
        if name == "pre":
            return [self._code(element)]
        if name == "ul":
            return self._bullets(element)
        if OP_LIST_CLASS in (element.get("class") or []):
            return self.op_table.convert(element)

        logger.debug(f"No block for <{name}> element")
        return []

    def _heading(self, element: Tag) -> HeadingBlock:
        text = WHITESPACE_RE.sub(" ", element.get_text()).strip()
        runs = [RichTextRun(content=text)] if text else []
        return HeadingBlock(type=HEADING_TYPES[element.name], text=runs)

    def _paragraph(self, element: Tag) -> ParagraphBlock:
        return ParagraphBlock(text=strip_runs(self.assembler.assemble_element(element)))

    def _code(self, element: Tag) -> CodeBlock:
        code = element.find("code")
        source = code if code is not None else element
        return CodeBlock(text=source.get_text().strip("\n"), language="plain text")

    def _bullets(self, element: Tag) -> list[Block]:
        return [
            BulletItemBlock(text=strip_runs(self.assembler.assemble_element(item)))
            for item in element.find_all("li", recursive=False)
        ]


def classify(element, base_url: Optional[str] = None) -> list[Block]:
    """Convenience function to classify a single element."""
    return BlockClassifier(base_url=base_url).classify(element)
