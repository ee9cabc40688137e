"""
Tests for the patch applier and document naming helpers.
"""

import pytest

from brain.core.content.patch import (
    apply_change_to_content,
    derive_document_path,
    slugify,
    unique_title,
)
from brain.models.change import ChangeOperation, ProposedChange


def make_change(operation: ChangeOperation, target: str = "", content: str = "") -> ProposedChange:
    return ProposedChange(
        document_id="doc_1", operation=operation, target=target, content=content
    )


@pytest.mark.unit
class TestApplyChangeToContent:
    """Test applying a single change to a body."""

    def test_insert_at_end(self):
        change = make_change(ChangeOperation.INSERT, "at the end", "<p>b</p>")
        assert apply_change_to_content("<p>a</p>", change) == "<p>a</p>\n<p>b</p>"

    def test_insert_after_heading(self):
        content = "<h2>Intro</h2><p>x</p><h2>Next</h2>"
        change = make_change(ChangeOperation.INSERT, "after Intro", "<p>new</p>")

        assert apply_change_to_content(content, change) == (
            "<h2>Intro</h2><p>x</p>\n<p>new</p><h2>Next</h2>"
        )

    def test_replace_section(self):
        content = "<h2>Goals</h2><p>old</p><h2>Risks</h2>"
        change = make_change(ChangeOperation.REPLACE, "replace Goals", "<h2>Goals</h2><p>new</p>")

        assert apply_change_to_content(content, change) == "<h2>Goals</h2><p>new</p><h2>Risks</h2>"

    def test_delete_section(self):
        content = "<h2>Goals</h2><p>g</p><h2>Risks</h2><p>r</p>"
        change = make_change(ChangeOperation.DELETE, "delete Risks")

        assert apply_change_to_content(content, change) == "<h2>Goals</h2><p>g</p>"

    def test_create_operation_appends(self):
        change = make_change(ChangeOperation.CREATE, "Anything", "<p>b</p>")
        assert apply_change_to_content("<p>a</p>", change) == "<p>a</p>\n<p>b</p>"

    def test_sequential_inserts_keep_order(self):
        content = "<p>x</p>"
        for text in ("A", "B"):
            content = apply_change_to_content(
                content, make_change(ChangeOperation.INSERT, "at the end", text)
            )
        assert content == "<p>x</p>\nA\nB"


@pytest.mark.unit
class TestNaming:
    """Test slugs, paths and title disambiguation."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Q2 Roadmap!", "q2-roadmap"),
            ("  Hello   World ", "hello-world"),
            ("Über Plan", "ber-plan"),
            ("!!!", "untitled"),
            ("", "untitled"),
        ],
    )
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    def test_derive_path(self):
        assert derive_document_path("Q2 Roadmap", "/docs", set()) == "/docs/q2-roadmap.md"

    def test_derive_path_strips_trailing_slash(self):
        assert derive_document_path("Plan", "/docs/", set()) == "/docs/plan.md"

    def test_derive_path_suffixes_collisions(self):
        existing = {"/docs/plan.md", "/docs/plan-2.md"}
        assert derive_document_path("Plan", "/docs", existing) == "/docs/plan-3.md"

    def test_unique_title_free(self):
        assert unique_title("Plan", {"Other"}) == "Plan"

    def test_unique_title_suffixes(self):
        assert unique_title("Untitled", {"Untitled", "Untitled 2"}) == "Untitled 3"
