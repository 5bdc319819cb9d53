"""
Teletype manual → Notion converter

Turns the monome Teletype manual (HTML) into Notion pages of typed blocks.
- Preprocessor: string-level cleanup and parsing
- Segmenter:    top-level headings → sections
- Classifier:   elements → blocks, with rich text and operation tables
- Publisher:    section pages and batched, throttled block submission

Public API surface:
  Pipeline classes: DocsConverter, DocsPipeline, Preprocessor, BlockClassifier,
                     OperationTableConverter, Publisher
  Functions       : assemble, classify, segment, chunk, decode
  Data models     : RichTextRun, Annotations, Section, ConversionResult, block types
  Collaborators   : DocumentClient, NotionClient, DryRunClient, DocumentClientFactory,
                     DocsCache, DocsFetcher, Settings, load_settings
  Error types     : ConverterError and subclasses
"""

# --- Core transducer ---
from .entities import decode
from .rich_text import RichTextAssembler, assemble, assemble_element
from .op_table import OperationTableConverter
from .classifier import BlockClassifier, classify
from .segmenter import segment
from .chunker import BATCH_LIMIT, chunk
from .preprocessor import Preprocessor

# --- Data models ---
from .schemas import (
    Annotations,
    Block,
    BlockBatch,
    BulletItemBlock,
    CodeBlock,
    ConversionResult,
    DividerBlock,
    HeadingBlock,
    ParagraphBlock,
    RichTextRun,
    Section,
    TableOfContentsBlock,
)

# --- Exceptions ---
from .exceptions import (
    ConfigurationError,
    ConverterError,
    DocsSourceError,
    DocumentAPIError,
    OperationTableError,
)

# --- External collaborators ---
from .config import Settings, load_settings
from .docs_cache import DocsCache, get_default_cache
from .fetcher import DocsFetcher, load_docs
from .notion_client import DocumentClient, DocumentClientFactory, DryRunClient, NotionClient
from .publisher import Publisher
from .main import DocsConverter, DocsPipeline, convert_file, convert_html

__version__ = "0.1.0"
__all__ = [
    "decode",
    "RichTextAssembler",
    "assemble",
    "assemble_element",
    "OperationTableConverter",
    "BlockClassifier",
    "classify",
    "segment",
    "BATCH_LIMIT",
    "chunk",
    "Preprocessor",
    "Annotations",
    "Block",
    "BlockBatch",
    "BulletItemBlock",
    "CodeBlock",
    "ConversionResult",
    "DividerBlock",
    "HeadingBlock",
    "ParagraphBlock",
    "RichTextRun",
    "Section",
    "TableOfContentsBlock",
    "ConfigurationError",
    "ConverterError",
    "DocsSourceError",
    "DocumentAPIError",
    "OperationTableError",
    "Settings",
    "load_settings",
    "DocsCache",
    "get_default_cache",
    "DocsFetcher",
    "load_docs",
    "DocumentClient",
    "DocumentClientFactory",
    "DryRunClient",
    "NotionClient",
    "Publisher",
    "DocsConverter",
    "DocsPipeline",
    "convert_file",
    "convert_html",
]
