"""
Extract structured blog posts from an exported blog document.

Usage:
    parse-blogs BlogforJungleheritage.html -o blogs_structured.json
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from resort.content.blog_extractor import extract_blogs
from resort.core.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert exported blog HTML into blog JSON")
    parser.add_argument("input", type=Path, help="Exported HTML document")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("blogs_structured.json"),
        help="Where to write the JSON (default: blogs_structured.json)",
    )
    args = parser.parse_args()

    setup_logging(level="INFO")

    if not args.input.exists():
        raise SystemExit(f"Input file not found: {args.input}")

    html = args.input.read_text(encoding="utf-8")
    blogs = extract_blogs(html)

    args.output.write_text(
        json.dumps([b.to_dict() for b in blogs], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Wrote %d blogs to %s", len(blogs), args.output)


if __name__ == "__main__":
    main()
