"""
Pydantic schemas for the document model produced by the converter.

RichTextRun: smallest unit of styled inline text
Block:       one structural unit of a page (heading, paragraph, code, ...)
Section:     a titled group of blocks bounded by top-level headings

Every model serialises itself with to_api() into the JSON shape the
document API expects. Block type names and rich text field names are the
API's own and must not be renamed.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .chunker import chunk


# --- Rich text ---

ANNOTATION_NAMES = ("bold", "italic", "strikethrough", "underline", "code")

# Longest content the API accepts in a single rich text item
TEXT_LIMIT = 2000


class Annotations(BaseModel):
    """Inline style flags attached to a run."""
    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"

    def with_flag(self, name: str) -> "Annotations":
        """Return a copy with one more flag enabled."""
        return self.model_copy(update={name: True})

    def enabled(self) -> frozenset:
        return frozenset(name for name in ANNOTATION_NAMES if getattr(self, name))


PLAIN = Annotations()


class RichTextRun(BaseModel):
    """
    An atomic piece of styled text.

    content is never subdivided by the converter; only to_api_items()
    splits it, to fit the API's text length limit. A run may carry several
    annotations at once, and a link on top of them.
    """
    content: str
    annotations: Annotations = Field(default_factory=Annotations)
    link: Optional[str] = None

    @property
    def annotation_set(self) -> frozenset:
        """Names of the enabled annotations; empty for plain text."""
        return self.annotations.enabled()

    def same_style(self, other: "RichTextRun") -> bool:
        return self.annotations == other.annotations and self.link == other.link

    def to_api(self) -> dict:
        return {
            "type": "text",
            "text": {
                "content": self.content,
                "link": {"url": self.link} if self.link else None,
            },
            "annotations": self.annotations.model_dump(),
        }

    def to_api_items(self, limit: int = TEXT_LIMIT) -> list[dict]:
        """
        Serialise as one or more rich text items of at most `limit` characters.

        Every item keeps the run's annotations and link.
        """
        if len(self.content) <= limit:
            return [self.to_api()]
        return [
            self.model_copy(update={"content": "".join(part)}).to_api()
            for part in chunk(self.content, limit)
        ]


def plain_text(runs: list[RichTextRun]) -> str:
    """Concatenate the content of a run sequence."""
    return "".join(run.content for run in runs)


def rich_text_items(runs: list[RichTextRun]) -> list[dict]:
    return [item for run in runs for item in run.to_api_items()]


def _rich_text_payload(block_type: str, runs: list[RichTextRun]) -> dict:
    return {
        "object": "block",
        "type": block_type,
        block_type: {"rich_text": rich_text_items(runs)},
    }


# --- Blocks ---

class HeadingBlock(BaseModel):
    type: Literal["heading_1", "heading_2", "heading_3"] = "heading_2"
    text: list[RichTextRun] = Field(default_factory=list)

    def to_api(self) -> dict:
        return _rich_text_payload(self.type, self.text)


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    text: list[RichTextRun] = Field(default_factory=list)

    def to_api(self) -> dict:
        return _rich_text_payload(self.type, self.text)


class BulletItemBlock(BaseModel):
    type: Literal["bulleted_list_item"] = "bulleted_list_item"
    text: list[RichTextRun] = Field(default_factory=list)

    def to_api(self) -> dict:
        return _rich_text_payload(self.type, self.text)


class CodeBlock(BaseModel):
    type: Literal["code"] = "code"
    text: str
    language: str = "plain text"

    def to_api(self) -> dict:
        return {
            "object": "block",
            "type": "code",
            "code": {
                "rich_text": RichTextRun(content=self.text).to_api_items(),
                "language": self.language,
            },
        }


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"

    def to_api(self) -> dict:
        return {"object": "block", "type": "divider", "divider": {}}


class TableOfContentsBlock(BaseModel):
    """Placed at the top of every section page."""
    type: Literal["table_of_contents"] = "table_of_contents"

    def to_api(self) -> dict:
        return {"object": "block", "type": "table_of_contents", "table_of_contents": {}}


Block = Annotated[
    Union[
        HeadingBlock,
        ParagraphBlock,
        BulletItemBlock,
        CodeBlock,
        DividerBlock,
        TableOfContentsBlock,
    ],
    Field(discriminator="type"),
]

# One slice of a block sequence sized for a single append request
BlockBatch = list[Block]


# --- Sections ---

class Section(BaseModel):
    """A titled group of blocks. Titles are not unique."""
    title: str
    blocks: list[Block] = Field(default_factory=list)

    def to_api(self) -> dict:
        return {
            "title": self.title,
            "children": [block.to_api() for block in self.blocks],
        }


class ConversionResult(BaseModel):
    """Output of a full conversion run."""
    version: str = ""
    sections: list[Section] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def block_count(self) -> int:
        return sum(len(section.blocks) for section in self.sections)
