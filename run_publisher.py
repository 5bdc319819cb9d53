#!/usr/bin/env python3
"""
Command-line script to convert the manual and publish it.

Reads NOTION_SECRET and NOTION_PAGE_ID from the environment (or .env).
Each manual section becomes a child page of a version page under
NOTION_PAGE_ID.

Usage:
    python run_publisher.py
    python run_publisher.py --dry
    python run_publisher.py --dump-example
"""

import argparse
import logging
import sys

# Load .env file automatically
from dotenv import load_dotenv
load_dotenv()

from teletype_notion.config import load_settings
from teletype_notion.exceptions import ConfigurationError, DocumentAPIError
from teletype_notion.logger import setup_logger
from teletype_notion.main import DocsPipeline


def main():
    parser = argparse.ArgumentParser(
        description="Publish the Teletype manual as document pages"
    )
    parser.add_argument(
        "--dry", "-d",
        action="store_true",
        default=None,
        help="Convert and log batches without calling the document API"
    )
    parser.add_argument(
        "--dump-example",
        action="store_true",
        help="Save the parent page's children to downloads/example.json and exit"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(level=log_level)

    try:
        settings = load_settings(dry=args.dry)
        pipeline = DocsPipeline(settings)

        if args.dump_example:
            children = pipeline.dump_example()
            print(f"Saved {len(children)} example blocks", file=sys.stderr)
            return 0

        result = pipeline.run()
        print(
            f"✓ Version {result.version or '?'}: "
            f"{len(result.sections)} sections, {result.block_count} blocks",
            file=sys.stderr
        )
        for warning in result.warnings:
            print(f"  ! {warning}", file=sys.stderr)
        return 0

    except ConfigurationError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 2

    except DocumentAPIError as e:
        print(f"✗ Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
