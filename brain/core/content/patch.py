"""
Patch applier: apply one change to one document body.

Create operations never reach `apply_change_to_content` in normal flow (the
document store turns them into new documents); the helpers for deriving the
new document's title and path live here alongside it.
"""

import re

from brain.core.content.locator import find_and_replace, find_insertion_point
from brain.models.change import ChangeOperation, ProposedChange

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def apply_change_to_content(content: str, change: ProposedChange) -> str:
    """
    Apply a change to a document body.

    Args:
        content: Current HTML body
        change: Change to apply

    Returns:
        New HTML body. Operations other than insert/replace/delete append the
        change content on a new line.
    """
    if change.operation == ChangeOperation.INSERT:
        point = find_insertion_point(content, change.target)
        return content[:point] + "\n" + change.content + content[point:]

    if change.operation == ChangeOperation.REPLACE:
        return find_and_replace(content, change.target, change.content)

    if change.operation == ChangeOperation.DELETE:
        return find_and_replace(content, change.target, "")

    return content + "\n" + change.content


def slugify(title: str) -> str:
    """
    Derive a URL/path-safe slug from a title.

    Lowercases, collapses runs of non-alphanumerics into one hyphen and strips
    leading/trailing hyphens. An empty result becomes "untitled".
    """
    slug = SLUG_PATTERN.sub("-", title.lower()).strip("-")
    return slug or "untitled"


def derive_document_path(title: str, root: str, existing_paths: set[str]) -> str:
    """
    Build a unique document path for a title under `root`.

    Args:
        title: Document title
        root: Documents root, e.g. "/docs"
        existing_paths: Paths already in use

    Returns:
        "{root}/{slug}.md", or "{root}/{slug}-N.md" for the first free N >= 2
    """
    base = f"{root.rstrip('/')}/{slugify(title)}"
    path = f"{base}.md"
    suffix = 2
    while path in existing_paths:
        path = f"{base}-{suffix}.md"
        suffix += 1
    return path


def unique_title(base_title: str, existing_titles: set[str]) -> str:
    """
    Disambiguate a title against existing ones.

    Returns:
        `base_title` if free, else "base_title 2", "base_title 3", ...
    """
    title = base_title
    suffix = 2
    while title in existing_titles:
        title = f"{base_title} {suffix}"
        suffix += 1
    return title
