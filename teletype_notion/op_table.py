"""
Operation table converter.

The manual documents its operators in tables (class "op-list") whose rows
read: operator, two signature/alias columns, description. Each row becomes

    3 header paragraphs  (bold + code, one per signature column)
    description paragraphs interleaved with JSON code samples
    1 divider

Descriptions encode lists and paragraphs only through <br> tags, and embed
multi-line code samples as <code> elements containing <br>. Those samples
are lifted out into standalone code blocks; the text around them is split
at the same places and assembled into paragraphs.
"""

import copy
import re
from typing import Optional

from bs4 import NavigableString, Tag

from .entities import decode
from .exceptions import OperationTableError
from .rich_text import NON_TEXT_STRINGS, RichTextAssembler, strip_runs
from .schemas import (
    Annotations,
    Block,
    CodeBlock,
    DividerBlock,
    ParagraphBlock,
    RichTextRun,
)
from .logger import get_module_logger

logger = get_module_logger("op_table")

HEADER_ANNOTATIONS = Annotations(bold=True, code=True)

# Stands in for an extracted code sample while the description is normalised.
# A private use character never appears in the manual's text.
SAMPLE_MARKER = "\ue000"

TEXT_PREFIX = "text "

BR = r"<br\s*/?>"
WHITESPACE_RE = re.compile(r"\s+")
MULTI_SPACE_RE = re.compile(r" {2,}")
PARAGRAPH_BREAK_RE = re.compile(rf"\s*(?:{BR}\s*){{2,}}", re.IGNORECASE)
ORDERED_ITEM_RE = re.compile(rf"\s*{BR}\s*(\d+)\.\s+", re.IGNORECASE)
UNORDERED_ITEM_RE = re.compile(rf"\s*{BR}\s*([-*])", re.IGNORECASE)
LINE_BREAK_RE = re.compile(rf"\s*{BR}\s*", re.IGNORECASE)


def normalize_line_breaks(markup: str) -> str:
    """
    Rebuild the pseudo-lists and paragraphs a description encodes with <br>.

    Order matters: paragraph breaks first, then list markers, then every
    remaining single break becomes a space.
    """
    markup = WHITESPACE_RE.sub(" ", markup)
    markup = PARAGRAPH_BREAK_RE.sub("\n\n", markup)
    markup = ORDERED_ITEM_RE.sub(r"\n\1. ", markup)
    markup = UNORDERED_ITEM_RE.sub(r"\n\1", markup)
    markup = LINE_BREAK_RE.sub(" ", markup)
    return markup


def code_sample_text(code: Tag) -> str:
    """
    Flatten a multi-line <code> element into the text of a code block.

    <br> tags become newlines, source newlines become spaces, runs of
    spaces are compressed and a leading "text " label is dropped.
    """
    parts = []
    for node in code.descendants:
        if isinstance(node, Tag):
            if node.name == "br":
                parts.append("\n")
        elif isinstance(node, NavigableString) and not isinstance(node, NON_TEXT_STRINGS):
            parts.append(str(node).replace("\r", "").replace("\n", " "))

    text = decode("".join(parts))
    text = MULTI_SPACE_RE.sub(" ", text).strip()
    if text.startswith(TEXT_PREFIX):
        text = text[len(TEXT_PREFIX):].lstrip()
    return text


def is_code_sample(code: Tag) -> bool:
    """A <code> element is a sample when it spans more than one line."""
    return code.find("br") is not None


class OperationTableConverter:
    """Converts an operation table into a flat block sequence."""

    EXPECTED_COLUMNS = 4
    HEADER_COLUMNS = 3

    def __init__(self, base_url: Optional[str] = None, strict: bool = False):
        """
        Args:
            base_url: Base for resolving relative links in descriptions
            strict: Raise OperationTableError for rows that do not have
                    exactly four columns instead of converting them best-effort
        """
        self.strict = strict
        # Descriptions are whitespace-normalised before assembly, so the
        # newlines produced by normalize_line_breaks() must survive
        self.assembler = RichTextAssembler(collapse_whitespace=False, base_url=base_url)

    def convert(self, table: Tag) -> list[Block]:
        """
        Convert every operation row of the table, in row order.

        Args:
            table: The op-list element, either a <table> or a wrapper around one

        Returns:
            Header paragraphs, description blocks and one divider per row
        """
        blocks: list[Block] = []
        rows = self._rows(table)

        for index, row in enumerate(rows):
            blocks.extend(self.convert_row(row, index))

        logger.debug(f"Converted {len(rows)} operation rows into {len(blocks)} blocks")
        return blocks

    def convert_row(self, row: Tag, index: int = 0) -> list[Block]:
        """Convert one <tr> into its header, description and divider blocks."""
        cells = row.find_all(["td", "th"], recursive=False)
        headers, description = self._split_cells(cells, index)

        blocks: list[Block] = [self._header_paragraph(cell) for cell in headers]
        if description is not None:
            blocks.extend(self._description_blocks(description))
        blocks.append(DividerBlock())
        return blocks

    def _rows(self, table: Tag) -> list[Tag]:
        """Rows owned by this table that hold data cells."""
        root = table if table.name == "table" else table.find("table")
        if root is None:
            logger.warning("op-list element contains no table")
            return []

        rows = []
        for tr in root.find_all("tr"):
            # Skip rows of tables nested inside a cell
            if tr.find_parent("table") is not root:
                continue
            # Header rows hold only <th> cells
            if tr.find("td", recursive=False) is None:
                continue
            rows.append(tr)
        return rows

    def _split_cells(self, cells: list[Tag], index: int) -> tuple[list[Optional[Tag]], Optional[Tag]]:
        if len(cells) == self.EXPECTED_COLUMNS:
            return list(cells[:self.HEADER_COLUMNS]), cells[self.HEADER_COLUMNS]

        if self.strict:
            raise OperationTableError(
                f"Operation row {index} has {len(cells)} columns, expected {self.EXPECTED_COLUMNS}",
                row_index=index,
                details={"columns": len(cells)}
            )

        logger.warning(
            f"Operation row {index} has {len(cells)} columns, "
            f"using the last one as description"
        )
        if not cells:
            return [None] * self.HEADER_COLUMNS, None

        headers: list[Optional[Tag]] = list(cells[:-1])[:self.HEADER_COLUMNS]
        headers.extend([None] * (self.HEADER_COLUMNS - len(headers)))
        return headers, cells[-1]

    def _header_paragraph(self, cell: Optional[Tag]) -> ParagraphBlock:
        if cell is None:
            return ParagraphBlock()
        text = decode(WHITESPACE_RE.sub(" ", cell.get_text()).strip())
        if not text:
            return ParagraphBlock()
        return ParagraphBlock(text=[RichTextRun(content=text, annotations=HEADER_ANNOTATIONS)])

    def _description_blocks(self, cell: Tag) -> list[Block]:
        # Work on a copy; the caller's tree must stay intact
        cell = copy.copy(cell)

        samples = []
        for code in cell.find_all("code"):
            if code.find_parent("code") is not None or not is_code_sample(code):
                continue
            samples.append(code_sample_text(code))
            code.replace_with(SAMPLE_MARKER)

        markup = normalize_line_breaks(cell.decode_contents())
        segments = markup.split(SAMPLE_MARKER)

        blocks: list[Block] = []
        for i, segment in enumerate(segments):
            runs = strip_runs(self.assembler.assemble(segment))
            if runs:
                blocks.append(ParagraphBlock(text=runs))
            if i < len(samples):
                blocks.append(CodeBlock(text=samples[i], language="json"))
        return blocks


def convert_op_table(table: Tag, base_url: Optional[str] = None) -> list[Block]:
    """Convenience function to convert an operation table."""
    return OperationTableConverter(base_url=base_url).convert(table)
