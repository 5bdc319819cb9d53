#!/usr/bin/env python3
"""
Tests for the document-level pipeline: segmentation, chunking, the docs
source, settings, the document API clients and the publisher.

The document API is never contacted; tests use DryRunClient or a fake
requests session.
"""

import json
import logging
import time

import pytest
from bs4 import BeautifulSoup

from teletype_notion.chunker import BATCH_LIMIT, chunk
from teletype_notion.config import Settings, load_settings
from teletype_notion.docs_cache import DOCS_FILE, EXAMPLE_FILE, DocsCache
from teletype_notion.exceptions import ConfigurationError, DocsSourceError, DocumentAPIError
from teletype_notion.fetcher import load_docs
from teletype_notion.logger import get_module_logger, setup_logger
from teletype_notion.main import DocsConverter, DocsPipeline, convert_html, version_from_title
from teletype_notion.notion_client import DocumentClientFactory, DryRunClient, NotionClient
from teletype_notion.preprocessor import Preprocessor, collapse_indentation
from teletype_notion.publisher import Publisher
from teletype_notion.schemas import (
    CodeBlock,
    DividerBlock,
    ParagraphBlock,
    RichTextRun,
    Section,
    TableOfContentsBlock,
)
from teletype_notion.segmenter import group_sections, segment

MANUAL = """<!DOCTYPE html>
<html>
<head><title>Teletype</title><script>var x = 1;</script></head>
<body>
<nav><p>Navigation</p></nav>
<div class="Content-inner">
    <h1>Teletype 4.0.0</h1>
    <p>Title page</p>
    <h1>Intro</h1>
    <p>First <strong>words</strong></p>
    <pre><code>A 1
  B 2</code></pre>
    <!-- comment -->
    <h1>Ops</h1>
    <h2>Maths</h2>
    <ul><li>one</li><li>two</li></ul>
</div>
</body>
</html>
"""


def top_level(fragment: str) -> list:
    return list(BeautifulSoup(fragment, "html.parser").contents)


# --- Segmenter ---

def test_segment_by_top_level_headings():
    elements = top_level("<h1>Intro</h1><p>a</p><p>b</p><h1>Ops</h1><p>c</p>")
    sections = segment(elements)

    assert [section.title for section in sections] == ["Intro", "Ops"]
    assert [len(section.blocks) for section in sections] == [2, 1]
    assert all(isinstance(block, ParagraphBlock) for block in sections[0].blocks)


def test_elements_before_first_heading_are_dropped():
    groups = group_sections(top_level("<p>orphan</p>\n<h1>  Only \n title </h1>\n<p>x</p>"))
    assert [(title, len(members)) for title, members in groups] == [("Only title", 1)]


def test_duplicate_titles_are_kept():
    sections = segment(top_level("<h1>Ops</h1><h1>Ops</h1><p>x</p>"))
    assert [section.title for section in sections] == ["Ops", "Ops"]
    assert [len(section.blocks) for section in sections] == [0, 1]


def test_segment_empty_input():
    assert segment([]) == []


# --- Chunker ---

def test_chunk_sizes():
    blocks = list(range(2500))
    batches = chunk(blocks, 999)

    assert [len(batch) for batch in batches] == [999, 999, 502]
    assert [item for batch in batches for item in batch] == blocks


def test_chunk_edges():
    assert BATCH_LIMIT == 999
    assert chunk([]) == []
    assert [len(batch) for batch in chunk(list(range(1998)))] == [999, 999]
    assert chunk(["a", "b", "c"], 1) == [["a"], ["b"], ["c"]]


def test_chunk_rejects_bad_limit():
    with pytest.raises(ValueError):
        chunk([1, 2], 0)


# --- Preprocessor and converter ---

def test_preprocessor_content_elements():
    elements = Preprocessor().process(MANUAL)
    names = [element.name for element in elements]

    assert names == ["h1", "p", "h1", "p", "pre", "h1", "h2", "ul"]


def test_preprocessor_missing_root_and_empty_document():
    preprocessor = Preprocessor()
    assert preprocessor.process("<html><body><p>x</p></body></html>") == []
    assert preprocessor.process("") == []


def test_sanitize_reports_fixes():
    sanitized, warnings = Preprocessor().sanitize("a\x00b\r\nc\x07")
    assert sanitized == "ab\nc"
    assert warnings == ["Removed NULL bytes", "Removed control characters"]


def test_collapse_indentation():
    assert collapse_indentation("<div>\n    <p>x</p>\n\n  </div>") == "<div>\n<p>x</p>\n</div>"


def test_setup_logger_reconfigures_level_and_libraries():
    package_logger = setup_logger(level=logging.DEBUG)
    try:
        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG
        assert all(handler.level == logging.DEBUG for handler in package_logger.handlers)
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert get_module_logger("op_table").name == "teletype_notion.op_table"
    finally:
        setup_logger(level=logging.INFO)
    assert package_logger.level == logging.INFO


def test_version_from_title():
    assert version_from_title("Teletype 4.0.0") == "4.0.0"
    assert version_from_title(" Other ") == "Other"


def test_convert_manual():
    result = convert_html(MANUAL)

    assert result.version == "4.0.0"
    assert [section.title for section in result.sections] == ["Intro", "Ops"]

    intro, ops = result.sections
    assert [block.type for block in intro.blocks] == ["paragraph", "code"]
    assert intro.blocks[0].text[1] == RichTextRun(content="words", annotations={"bold": True})
    assert intro.blocks[1] == CodeBlock(text="A 1\n  B 2", language="plain text")
    assert [block.type for block in ops.blocks] == [
        "heading_2", "bulleted_list_item", "bulleted_list_item"
    ]
    assert result.block_count == 5


def test_convert_without_content():
    result = DocsConverter().convert("")
    assert result.sections == []
    assert result.warnings


# --- Docs source ---

def test_load_docs_fetches_and_caches(tmp_path):
    cache = DocsCache(tmp_path / "downloads")
    page = "<div>\n    <p>x</p>\n</div>"

    assert load_docs(cache, lambda: page) == page
    assert cache.get(DOCS_FILE) == "<div>\n<p>x</p>\n</div>"

    def must_not_fetch():
        raise AssertionError("fetched despite cache")

    assert load_docs(cache, must_not_fetch) == "<div>\n<p>x</p>\n</div>"


def test_load_docs_failure_is_not_cached(tmp_path):
    cache = DocsCache(tmp_path)

    def failing_fetch():
        raise DocsSourceError("offline")

    assert load_docs(cache, failing_fetch) == ""
    assert load_docs(cache, lambda: "") == ""
    assert not cache.exists(DOCS_FILE)


def test_docs_cache_round_trip(tmp_path):
    cache = DocsCache(tmp_path)
    assert cache.get("missing.html") is None

    cache.put("page.html", "<p>x</p>")
    assert cache.exists("page.html")
    assert cache.delete("page.html")
    assert not cache.delete("page.html")


# --- Settings ---

def test_load_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("NOTION_SECRET", "secret")
    monkeypatch.setenv("NOTION_PAGE_ID", "parent")
    monkeypatch.setenv("DRY_RUN", "1")
    monkeypatch.setenv("DOWNLOADS_DIR", str(tmp_path))
    monkeypatch.delenv("DOCS_URL", raising=False)

    settings = load_settings()
    assert settings.notion_secret == "secret"
    assert settings.notion_page_id == "parent"
    assert settings.dry is True
    assert settings.downloads_dir == tmp_path
    assert settings.batch_limit == 999

    assert load_settings(dry=False, notion_page_id=None).dry is False
    assert load_settings(dry=False, notion_page_id=None).notion_page_id == "parent"


def test_dry_run_flag_values(monkeypatch):
    monkeypatch.setenv("DRY_RUN", "false")
    assert load_settings().dry is False
    monkeypatch.delenv("DRY_RUN")
    assert load_settings().dry is False


def test_publishing_requires_credentials():
    with pytest.raises(ConfigurationError) as excinfo:
        Settings(notion_page_id="parent").validate_for_publish()
    assert excinfo.value.details == {"missing": ["NOTION_SECRET"]}

    with pytest.raises(ConfigurationError):
        DocumentClientFactory.create(Settings())

    Settings(dry=True).validate_for_publish()
    assert isinstance(DocumentClientFactory.create(Settings(dry=True)), DryRunClient)
    assert isinstance(
        DocumentClientFactory.create(Settings(notion_secret="s", notion_page_id="p")),
        NotionClient
    )


# --- Block payloads ---

def test_block_payloads():
    run = RichTextRun(content="x", annotations={"bold": True, "code": True}, link="http://x")
    assert run.to_api() == {
        "type": "text",
        "text": {"content": "x", "link": {"url": "http://x"}},
        "annotations": {
            "bold": True,
            "italic": False,
            "strikethrough": False,
            "underline": False,
            "code": True,
            "color": "default",
        },
    }
    assert RichTextRun(content="y").to_api()["text"]["link"] is None

    assert ParagraphBlock(text=[RichTextRun(content="p")]).to_api()["paragraph"]["rich_text"][0]["text"]["content"] == "p"
    assert CodeBlock(text="a", language="json").to_api()["code"]["language"] == "json"
    assert DividerBlock().to_api() == {"object": "block", "type": "divider", "divider": {}}
    assert TableOfContentsBlock().to_api()["type"] == "table_of_contents"


def test_long_text_is_split_into_api_sized_items():
    code = CodeBlock(text="x" * 4500, language="json").to_api()["code"]["rich_text"]
    assert [len(item["text"]["content"]) for item in code] == [2000, 2000, 500]

    run = RichTextRun(content="y" * 2001, annotations={"bold": True}, link="http://x")
    items = ParagraphBlock(text=[run, RichTextRun(content="z")]).to_api()["paragraph"]["rich_text"]
    assert [item["text"]["content"] for item in items] == ["y" * 2000, "y", "z"]
    assert all(item["annotations"]["bold"] for item in items[:2])
    assert all(item["text"]["link"] == {"url": "http://x"} for item in items[:2])

    assert CodeBlock(text="").to_api()["code"]["rich_text"][0]["text"]["content"] == ""


def test_section_blocks_validate_by_type():
    section = Section.model_validate({
        "title": "x",
        "blocks": [{"type": "divider"}, {"type": "code", "text": "a"}],
    })
    assert isinstance(section.blocks[0], DividerBlock)
    assert section.blocks[1].language == "plain text"


# --- Clients ---

class FakeResponse:
    def __init__(self, status_code: int, body: dict):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body
        self.text = json.dumps(body)

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, responses: list[FakeResponse]):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)


def test_notion_client_sets_headers_and_paginates():
    session = FakeSession([
        FakeResponse(200, {"results": [{"id": "1"}], "has_more": True, "next_cursor": "c1"}),
        FakeResponse(200, {"results": [{"id": "2"}], "has_more": False, "next_cursor": None}),
    ])
    client = NotionClient("secret", session=session)

    assert [block["id"] for block in client.list_children("page")] == ["1", "2"]
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Notion-Version"] == "2022-06-28"
    assert session.calls[1][2]["params"]["start_cursor"] == "c1"
    assert session.calls[0][1] == "https://api.notion.com/v1/blocks/page/children"


def test_notion_client_requests():
    session = FakeSession([FakeResponse(200, {"id": "new"}), FakeResponse(200, {"results": []})])
    client = NotionClient("secret", session=session)

    assert client.create_page("parent", "Intro") == {"id": "new"}
    client.append_children("new", [DividerBlock().to_api()])

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://api.notion.com/v1/pages")
    assert kwargs["json"]["parent"] == {"page_id": "parent"}
    assert kwargs["json"]["properties"]["title"]["title"][0]["text"]["content"] == "Intro"

    method, url, kwargs = session.calls[1]
    assert (method, url) == ("PATCH", "https://api.notion.com/v1/blocks/new/children")
    assert kwargs["json"] == {"children": [DividerBlock().to_api()]}


def test_notion_client_error():
    session = FakeSession([FakeResponse(400, {"message": "body failed validation"})])
    client = NotionClient("secret", session=session)

    with pytest.raises(DocumentAPIError) as excinfo:
        client.append_children("page", [])
    assert excinfo.value.status_code == 400
    assert excinfo.value.to_response()["details"] == {"message": "body failed validation"}


# --- Publisher ---

class RecordingLimiter:
    def __init__(self):
        self.acquired = []

    def try_acquire(self, name, weight=1):
        self.acquired.append(name)
        return True


class PagesClient(DryRunClient):
    """Dry client whose pages already have children."""

    def __init__(self, children: dict):
        super().__init__()
        self.children = children

    def list_children(self, block_id):
        return self.children.get(block_id, [])


def child_page(page_id: str, title: str) -> dict:
    return {"id": page_id, "type": "child_page", "child_page": {"title": title}}


def test_publish_creates_pages_and_batches():
    client = DryRunClient()
    limiter = RecordingLimiter()
    publisher = Publisher(client, batch_limit=2, limiter=limiter)

    sections = [Section(title="Intro", blocks=[ParagraphBlock() for _ in range(5)])]
    publisher.publish("parent", "4.0.0", sections)

    assert client.created_pages == [("parent", "4.0.0"), ("", "Intro")]
    assert [len(children) for _, children in client.appended] == [1, 2, 2, 1]
    assert client.appended[0][1] == [TableOfContentsBlock().to_api()]
    assert len(limiter.acquired) == 4


def test_existing_pages_are_reused():
    client = PagesClient({
        "parent": [child_page("v", "4.0.0"), {"id": "x", "type": "paragraph"}],
        "v": [child_page("a", "Ops"), child_page("b", "Ops")],
    })
    publisher = Publisher(client)

    version_page = publisher.publish("parent", "4.0.0", [Section(title="Ops")])

    assert version_page == {"id": "v"}
    assert client.created_pages == []
    assert client.appended == [("a", [TableOfContentsBlock().to_api()])]


def test_dry_client_is_not_throttled():
    assert Publisher(DryRunClient(), min_interval_ms=200).limiter is None
    assert Publisher(PagesClient({}), min_interval_ms=0).limiter is None


class TimedClient(DryRunClient):
    """Client that counts as live, so the publisher throttles it."""

    dry = False

    def __init__(self):
        super().__init__()
        self.times = []

    def append_children(self, block_id, children):
        self.times.append(time.monotonic())
        return super().append_children(block_id, children)


def test_appends_are_spaced_by_min_interval():
    client = TimedClient()
    publisher = Publisher(client, batch_limit=1, min_interval_ms=200)
    assert publisher.limiter is not None

    assert publisher.append_blocks("page", [DividerBlock() for _ in range(4)]) == 4

    gaps = [later - earlier for earlier, later in zip(client.times, client.times[1:])]
    assert len(gaps) == 3
    assert min(gaps) >= 0.19


def test_append_blocks_counts_requests():
    client = DryRunClient()
    publisher = Publisher(client, batch_limit=999)

    assert publisher.append_blocks("page", [DividerBlock()] * 2500) == 3
    assert publisher.append_blocks("page", []) == 0
    assert [len(children) for _, children in client.appended] == [999, 999, 502]


# --- Pipeline ---

def test_pipeline_run_dry(tmp_path):
    settings = Settings(dry=True, notion_page_id="parent", downloads_dir=tmp_path)
    cache = DocsCache(tmp_path)
    cache.put(DOCS_FILE, MANUAL)
    client = DryRunClient()

    def no_fetch():
        raise AssertionError("fetched despite cache")

    result = DocsPipeline(settings, client=client, fetcher=no_fetch).run()

    assert result.version == "4.0.0"
    assert client.created_pages == [("parent", "4.0.0"), ("", "Intro"), ("", "Ops")]
    # One table of contents and one batch per section
    assert len(client.appended) == 4


def test_pipeline_without_docs_publishes_nothing(tmp_path):
    settings = Settings(dry=True, downloads_dir=tmp_path)
    client = DryRunClient()

    result = DocsPipeline(settings, client=client, fetcher=lambda: "").run()

    assert result.sections == []
    assert client.created_pages == []


def test_dump_example(tmp_path):
    settings = Settings(dry=True, notion_page_id="parent", downloads_dir=tmp_path)
    client = PagesClient({"parent": [child_page("v", "4.0.0")]})

    children = DocsPipeline(settings, client=client).dump_example()

    assert children == [child_page("v", "4.0.0")]
    assert json.loads((tmp_path / EXAMPLE_FILE).read_text()) == children
