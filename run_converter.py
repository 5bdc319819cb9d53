#!/usr/bin/env python3
"""
CLI script to run the converter without touching the document API.

Converts manual HTML files (or the cached/fetched manual when no files are
given) and prints the generated sections as JSON, in the shape they would
be sent to the API.
"""

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from teletype_notion.config import load_settings
from teletype_notion.docs_cache import DocsCache
from teletype_notion.fetcher import DocsFetcher, load_docs
from teletype_notion.logger import setup_logger
from teletype_notion.main import DocsConverter


def result_to_json(name: str, result) -> dict:
    return {
        "file": name,
        "status": "success",
        "version": result.version,
        "sections": [section.to_api() for section in result.sections],
        "warnings": result.warnings
    }


def main():
    parser = argparse.ArgumentParser(description="Convert the Teletype manual to document blocks")
    parser.add_argument("files", nargs="*", help="HTML files to convert (default: cached manual)")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    if args.verbose:
        setup_logger(level=logging.DEBUG)

    settings = load_settings()
    converter = DocsConverter(settings)
    results = []

    if not args.files:
        html = load_docs(DocsCache(settings.downloads_dir), DocsFetcher(settings.docs_url))
        result = converter.convert(html)
        results.append(result_to_json(settings.docs_url, result))
        print(f"✓ {len(result.sections)} sections, {result.block_count} blocks")

    for filepath in args.files:
        path = Path(filepath)
        print(f"Converting: {path.name}")

        try:
            result = converter.convert_file(path)
            results.append(result_to_json(path.name, result))
            print(f"  ✓ {len(result.sections)} sections, {result.block_count} blocks")
        except (OSError, UnicodeDecodeError) as e:
            results.append({
                "file": path.name,
                "status": "error",
                "error": str(e)
            })
            print(f"  ✗ Error: {e}")

    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nSaved to: {args.output}")
    else:
        print("\n" + output)


if __name__ == "__main__":
    main()
