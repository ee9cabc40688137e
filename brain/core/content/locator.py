"""
Heading-based content locator.

Translates a free-text target ("after Q2 2025", "replace the Decisions
section", "at the end") into an offset or span inside an HTML body. Headings
(<h1>-<h6>) are the only landmarks: a section starts at its heading and ends
at the next heading of the same or a shallower level, so an <h3> nested under
an <h2> belongs to the <h2>'s section.

Nothing here raises. Every unmatched or ambiguous target degrades to
appending at the end of the document.
"""

import html
import re

from pydantic import BaseModel, ConfigDict, Field

# Complete heading whose text has no nested tags
HEADING_PATTERN = re.compile(r"<h([1-6])[^>]*>([^<]*)</h[1-6]>", re.IGNORECASE)
# Any heading opening tag; these are the section boundaries
HEADING_OPEN_PATTERN = re.compile(r"<h([1-6])[^>]*>", re.IGNORECASE)
HEADING_CLOSE_PATTERN = re.compile(r"</h[1-6]>", re.IGNORECASE)
THE_PATTERN = re.compile(r"\bthe\b")


class Heading(BaseModel):
    """A complete heading element and its character span in the document."""

    model_config = ConfigDict(frozen=True)

    level: int
    text: str
    start: int
    end: int


class HeadingOutline(BaseModel):
    """
    Flat, document-ordered view of the headings in an HTML body.

    Built once per lookup so section boundaries are a linear scan over
    records rather than repeated regex searches.
    """

    model_config = ConfigDict(frozen=True)

    length: int
    headings: list[Heading] = Field(default_factory=list)
    boundaries: list[tuple[int, int]] = Field(default_factory=list)  # (start, level)

    @classmethod
    def from_content(cls, content: str) -> "HeadingOutline":
        """Scan content for headings and heading opening tags."""
        headings = [
            Heading(
                level=int(match.group(1)),
                text=html.unescape(match.group(2)),
                start=match.start(),
                end=match.end(),
            )
            for match in HEADING_PATTERN.finditer(content)
        ]
        boundaries = [
            (match.start(), int(match.group(1))) for match in HEADING_OPEN_PATTERN.finditer(content)
        ]
        return cls(length=len(content), headings=headings, boundaries=boundaries)

    def find(self, term: str) -> Heading | None:
        """First heading whose text contains `term` (case-insensitive)."""
        term = term.lower()
        for heading in self.headings:
            if term in heading.text.lower():
                return heading
        return None

    def section_end(self, heading: Heading) -> int:
        """Offset of the next heading at the same or shallower level, else document end."""
        for start, level in self.boundaries:
            if start >= heading.end and level <= heading.level:
                return start
        return self.length


def _remove_first(text: str, word: str) -> str:
    return text.replace(word, "", 1)


def find_insertion_point(content: str, target: str) -> int:
    """
    Compute where new content should be inserted.

    Rules are tried in order; a rule that finds no match falls through to
    the next one rather than stopping the cascade.

    Args:
        content: HTML document body
        target: Free-text locator such as "after Intro" or "at the end"

    Returns:
        Character offset in [0, len(content)]
    """
    lower_target = target.lower()

    if "after" in lower_target:
        term = _remove_first(lower_target, "after").strip()
        outline = HeadingOutline.from_content(content)
        heading = outline.find(term)
        if heading is not None:
            return outline.section_end(heading)

    if "before" in lower_target:
        term = _remove_first(lower_target, "before").strip()
        index = content.lower().find(term)
        if index != -1:
            tag_start = content.rfind("<", 0, index)
            return tag_start if tag_start != -1 else index

    if "end" in lower_target:
        return len(content)

    if "beginning" in lower_target or "start" in lower_target:
        match = HEADING_CLOSE_PATTERN.search(content)
        return match.end() if match else 0

    return len(content)


def clean_section_target(target: str) -> str:
    """Strip the replace/delete keywords and the word "the" from a section target."""
    term = target.lower()
    term = _remove_first(term, "replace")
    term = _remove_first(term, "delete")
    term = THE_PATTERN.sub("", term, count=1)
    return term.strip()


def find_section(content: str, target: str) -> tuple[int, int] | None:
    """
    Locate the heading-delimited section a replace/delete target refers to.

    Returns:
        (start, end) span of the section, or None if the target has no
        replace/delete keyword or no heading matches
    """
    lower_target = target.lower()
    if "replace" not in lower_target and "delete" not in lower_target:
        return None

    outline = HeadingOutline.from_content(content)
    heading = outline.find(clean_section_target(target))
    if heading is None:
        return None
    return heading.start, outline.section_end(heading)


def find_and_replace(content: str, target: str, new_content: str) -> str:
    """
    Replace the section named by `target` with `new_content`.

    Falls back to appending `new_content` on a new line when the target does
    not name a section or no heading matches.

    Args:
        content: HTML document body
        target: Locator such as "replace Decisions" or "delete the Risks"
        new_content: Replacement HTML ("" to delete the section)

    Returns:
        New document body
    """
    span = find_section(content, target)
    if span is None:
        return content + "\n" + new_content

    start, end = span
    return content[:start] + new_content + content[end:]
