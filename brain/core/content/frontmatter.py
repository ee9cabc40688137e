"""
Frontmatter codec for document content.

A document may start with a `---` delimited block of `key: value` lines.
Reading splits the block from the body; writing re-wraps the *raw* block
text rather than re-serializing the parsed mapping, so the user's formatting,
comments and ordering survive a round trip byte for byte.
"""

import re

from pydantic import BaseModel, Field

FRONTMATTER_PATTERN = re.compile(r"^---\s*\r?\n(.*?)\r?\n---\s*\r?\n?", re.DOTALL)
LINE_SPLIT_PATTERN = re.compile(r"\r?\n")


class FrontmatterResult(BaseModel):
    """Content split into frontmatter and body."""

    body: str
    frontmatter: dict[str, str] = Field(default_factory=dict)
    frontmatter_raw: str | None = None


def parse_frontmatter_block(raw: str) -> dict[str, str]:
    """
    Parse `key: value` lines of a frontmatter block.

    Blank lines, `#` comments and lines without a colon are ignored. Only the
    first colon separates key from value, so values may contain colons.
    """
    frontmatter: dict[str, str] = {}
    for line in LINE_SPLIT_PATTERN.split(raw):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, separator, value = trimmed.partition(":")
        if not separator:
            continue
        key = key.strip()
        if key:
            frontmatter[key] = value.strip()
    return frontmatter


def parse_frontmatter(content: str) -> FrontmatterResult:
    """
    Split a leading frontmatter block from the document body.

    Args:
        content: Full document content

    Returns:
        FrontmatterResult; `frontmatter_raw` is None when there is no block
    """
    if not content.startswith("---"):
        return FrontmatterResult(body=content)

    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return FrontmatterResult(body=content)

    raw = match.group(1)
    return FrontmatterResult(
        body=content[match.end() :],
        frontmatter=parse_frontmatter_block(raw),
        frontmatter_raw=raw,
    )


def serialize_document_content(frontmatter_raw: str | None, body: str) -> str:
    """
    Join a raw frontmatter block and a body back into document content.

    Exactly one leading newline is stripped from the body so repeated
    read/write cycles don't accumulate blank lines.
    """
    if not frontmatter_raw:
        return body
    normalized_body = body[1:] if body.startswith("\n") else body
    return f"---\n{frontmatter_raw}\n---\n{normalized_body}"
