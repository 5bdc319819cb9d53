"""
Main orchestrator for the Teletype manual converter.

Coordinates the pipeline:
    docs source → Preprocessor → Segmenter/Classifier → Publisher

Every collaborator is passed in (or built from Settings here), so the
conversion itself can run without any knowledge of the document API.
"""

import json
from pathlib import Path
from typing import Optional, Union

from .classifier import BlockClassifier
from .config import Settings
from .docs_cache import EXAMPLE_FILE, DocsCache
from .fetcher import DocsFetcher, load_docs
from .notion_client import DocumentClient, DocumentClientFactory
from .preprocessor import Preprocessor
from .publisher import Publisher
from .schemas import ConversionResult
from .segmenter import segment
from .logger import get_module_logger

logger = get_module_logger("main")

VERSION_PREFIX = "Teletype "


def version_from_title(title: str) -> str:
    """'Teletype 4.0.0' → '4.0.0'"""
    return title.replace(VERSION_PREFIX, "", 1).strip()


class DocsConverter:
    """
    Converts manual HTML into sections of blocks.

    The first section is the manual's title page; its heading names the
    version and its content is not converted.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        preprocessor: Optional[Preprocessor] = None,
        classifier: Optional[BlockClassifier] = None
    ):
        self.settings = settings or Settings()
        self.preprocessor = preprocessor or Preprocessor(self.settings.content_selector)
        self.classifier = classifier or BlockClassifier(base_url=self.settings.docs_url)

    def convert(self, html: str) -> ConversionResult:
        """
        Convert a full manual document.

        Args:
            html: Raw manual HTML (may be empty)

        Returns:
            ConversionResult with the version and the content sections
        """
        logger.info("Starting conversion")
        warnings = []

        elements = self.preprocessor.process(html)
        if not elements:
            warnings.append("No content elements found")
            return ConversionResult(warnings=warnings)

        sections = segment(elements, self.classifier)
        if not sections:
            warnings.append("No section headings found")
            return ConversionResult(warnings=warnings)

        result = ConversionResult(
            version=version_from_title(sections[0].title),
            sections=sections[1:],
            warnings=warnings
        )
        logger.info(
            f"Complete: version '{result.version}', "
            f"{len(result.sections)} sections, {result.block_count} blocks"
        )
        return result

    def convert_file(self, file_path: Union[str, Path]) -> ConversionResult:
        """Convert a manual saved on disk."""
        return self.convert(Path(file_path).read_text(encoding="utf-8"))


class DocsPipeline:
    """
    Loads the manual, converts it and publishes it.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[DocumentClient] = None,
        cache: Optional[DocsCache] = None,
        fetcher=None,
        converter: Optional[DocsConverter] = None,
        publisher: Optional[Publisher] = None
    ):
        """
        Args:
            settings: Run settings
            client: Document API client (default: from DocumentClientFactory)
            cache: Docs cache (default: settings.downloads_dir)
            fetcher: Callable returning the manual HTML (default: DocsFetcher)
            converter: DocsConverter (default: built from settings)
            publisher: Publisher (default: built around client)
        """
        self.settings = settings
        self.client = client or DocumentClientFactory.create(settings)
        self.cache = cache or DocsCache(settings.downloads_dir)
        self.fetcher = fetcher or DocsFetcher(settings.docs_url)
        self.converter = converter or DocsConverter(settings)
        self.publisher = publisher or Publisher(
            self.client,
            batch_limit=settings.batch_limit,
            min_interval_ms=settings.min_interval_ms
        )

    def load(self) -> str:
        """Cache-first load of the manual HTML."""
        return load_docs(self.cache, self.fetcher)

    def convert(self) -> ConversionResult:
        return self.converter.convert(self.load())

    def run(self) -> ConversionResult:
        """
        Convert the manual and publish every section.

        Returns:
            The conversion that was published
        """
        result = self.convert()
        if not result.sections:
            logger.warning("Nothing to publish")
            return result

        self.publisher.publish(self.settings.notion_page_id, result.version, result.sections)
        return result

    def dump_example(self) -> list[dict]:
        """
        Store the parent page's children as example.json, for comparing the
        generated payloads with blocks created by hand in the editor.
        """
        children = self.client.list_children(self.settings.notion_page_id)
        self.cache.put(EXAMPLE_FILE, json.dumps(children, indent=4))
        return children


def convert_html(html: str, settings: Optional[Settings] = None) -> ConversionResult:
    """Convenience function to convert manual HTML."""
    return DocsConverter(settings).convert(html)


def convert_file(file_path: Union[str, Path], settings: Optional[Settings] = None) -> ConversionResult:
    """Convenience function to convert a manual file."""
    return DocsConverter(settings).convert_file(file_path)
