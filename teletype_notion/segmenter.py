"""
Section segmenter.

Splits the flat list of top-level content elements into sections, one per
<h1>. Elements before the first <h1> belong to no section and are dropped.
"""

from typing import Iterable, Optional

from bs4 import NavigableString, Tag

from .classifier import BlockClassifier
from .schemas import Block, Section
from .logger import get_module_logger

logger = get_module_logger("segmenter")

SECTION_HEADING = "h1"


def is_section_heading(element) -> bool:
    return isinstance(element, Tag) and element.name == SECTION_HEADING


def group_sections(elements: Iterable) -> list[tuple[str, list[Tag]]]:
    """
    Group elements under the most recent top-level heading.

    Returns:
        (title, elements) pairs in document order; titles may repeat
    """
    groups: list[tuple[str, list[Tag]]] = []
    dropped = 0

    for element in elements:
        # Whitespace between tags carries no content
        if isinstance(element, NavigableString) and not element.strip():
            continue

        if is_section_heading(element):
            groups.append((" ".join(element.get_text().split()), []))
        elif groups:
            groups[-1][1].append(element)
        else:
            dropped += 1

    if dropped:
        logger.debug(f"Dropped {dropped} elements before the first section heading")
    return groups


def segment(elements: Iterable, classifier: Optional[BlockClassifier] = None) -> list[Section]:
    """
    Partition elements into titled sections and convert each to blocks.

    Args:
        elements: Top-level elements of the content root, in document order
        classifier: Classifier to convert elements (default: BlockClassifier())

    Returns:
        Sections in document order
    """
    classifier = classifier or BlockClassifier()
    sections = []

    for title, members in group_sections(elements):
        blocks: list[Block] = []
        for element in members:
            blocks.extend(classifier.classify(element))
        sections.append(Section(title=title, blocks=blocks))
        logger.debug(f"Section '{title}': {len(members)} elements, {len(blocks)} blocks")

    return sections
