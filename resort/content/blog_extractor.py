"""Convert an exported blog document (Google Docs HTML) into blog posts.

The export is one flat ``<body>``: each post starts at a paragraph reading
``Blog <n>`` and runs until the next marker. Docs styles headings and
excerpts with generated class names (``c26``, ``c32``, ``c12``), which is
what the title/excerpt detection keys on.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

BLOG_MARKER_RE = re.compile(r"^Blog \d+$")

TITLE_CLASS = "c26"
EXCERPT_SELECTOR = ".c32, .c12"
META_DESCRIPTION_PREFIX = "Meta Description"

# Table-of-contents teasers truncated by the export
SKIPPED_TEASERS = (
    "Wildlife of Dudhwa National Park...",
    "Best Time to Visit Dudhwa Natio...",
)

# (title keyword, category); applied in order, later matches win
CATEGORY_RULES = (
    ("Best Time", "Travel Guide"),
    ("Wildlife", "Wildlife"),
    ("Luxury", "Resort"),
    ("Weekend Escape", "Travel Guide"),
    ("Eco-Luxury", "Sustainability"),
)


def _block_id() -> str:
    return uuid.uuid4().hex[:7]


@dataclass
class BlogPost:
    title: str = ""
    category: str = "General"
    excerpt: str = ""
    featured_image: str = ""
    blocks: list[dict[str, Any]] = field(default_factory=list)

    def add_heading(self, text: str, level: int) -> None:
        self.blocks.append({"id": _block_id(), "type": "heading", "content": text, "level": level})

    def add_image(self, src: str) -> None:
        self.blocks.append({"id": _block_id(), "type": "image", "content": src, "caption": ""})

    def add_paragraph(self, text: str) -> None:
        self.blocks.append({"id": _block_id(), "type": "paragraph", "content": text})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def categorize(title: str) -> str:
    category = "General"
    for keyword, name in CATEGORY_RULES:
        if keyword in title:
            category = name
    return category


def _is_title(el: Tag) -> bool:
    return el.name == "h1" or (el.name == "p" and TITLE_CLASS in (el.get("class") or []))


def _apply_element(blog: BlogPost, el: Tag, text: str) -> None:
    if not blog.title and _is_title(el):
        blog.title = text
        return

    if not blog.excerpt and el.name == "p" and el.select_one(EXCERPT_SELECTOR):
        blog.excerpt = text
        return

    if text.startswith(META_DESCRIPTION_PREFIX):
        blog.excerpt = text.replace(META_DESCRIPTION_PREFIX, "", 1).strip()
        return

    if el.name == "h2":
        blog.add_heading(text, 2)
    elif el.name == "h3":
        blog.add_heading(text, 3)
    elif el.find("img") is not None:
        src = el.find("img").get("src") or ""
        if not blog.featured_image and not blog.blocks:
            blog.featured_image = src
        else:
            blog.add_image(src)
    elif text and not any(teaser in text for teaser in SKIPPED_TEASERS):
        blog.add_paragraph(text)


def extract_blogs(html: str) -> list[BlogPost]:
    """Split the exported document into posts.

    Elements before the first ``Blog <n>`` marker are ignored.
    """
    soup = BeautifulSoup(html, "html.parser")
    body = soup.body or soup

    blogs: list[BlogPost] = []
    current: BlogPost | None = None

    for el in body.find_all(recursive=False):
        text = el.get_text().strip()

        if BLOG_MARKER_RE.match(text):
            if current is not None:
                blogs.append(current)
            current = BlogPost()
            continue

        if current is None:
            continue

        _apply_element(current, el, text)

    if current is not None:
        blogs.append(current)

    for blog in blogs:
        blog.category = categorize(blog.title)

    logger.info("Processed %d blogs", len(blogs))
    return blogs
