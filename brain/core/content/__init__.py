"""
Document content handling: frontmatter codec, heading locator, patch applier.
"""

from brain.core.content.frontmatter import (
    FrontmatterResult,
    parse_frontmatter,
    serialize_document_content,
)
from brain.core.content.locator import (
    Heading,
    HeadingOutline,
    find_and_replace,
    find_insertion_point,
    find_section,
)
from brain.core.content.patch import (
    apply_change_to_content,
    derive_document_path,
    slugify,
    unique_title,
)

__all__ = [
    "FrontmatterResult",
    "parse_frontmatter",
    "serialize_document_content",
    "Heading",
    "HeadingOutline",
    "find_insertion_point",
    "find_and_replace",
    "find_section",
    "apply_change_to_content",
    "slugify",
    "derive_document_path",
    "unique_title",
]
