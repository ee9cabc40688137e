"""
Tests for ID generation utilities.

Tests cover:
1. Prefix and length of every ID kind
2. Uniqueness guarantees
"""

import pytest

from brain.utils import (
    generate_change_id,
    generate_document_id,
    generate_entity_id,
    generate_message_id,
    generate_relationship_id,
    generate_resolution_id,
    generate_session_id,
    generate_transcript_id,
    generate_version_id,
)

GENERATORS = [
    (generate_document_id, "doc_"),
    (generate_version_id, "ver_"),
    (generate_change_id, "chg_"),
    (generate_resolution_id, "res_"),
    (generate_session_id, "ses_"),
    (generate_message_id, "msg_"),
    (generate_entity_id, "ent_"),
    (generate_relationship_id, "rel_"),
    (generate_transcript_id, "trn_"),
]


class TestIdFormat:
    """Tests for ID shape."""

    @pytest.mark.parametrize("generate,prefix", GENERATORS)
    def test_format(self, generate, prefix):
        """Test ID format: prefix followed by 12 hex chars."""
        generated = generate()

        assert generated.startswith(prefix)
        assert len(generated) == len(prefix) + 12
        int(generated[len(prefix) :], 16)


class TestIdUniqueness:
    """Tests for ID uniqueness."""

    def test_document_ids_unique(self):
        ids = [generate_document_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))

    def test_change_ids_unique(self):
        ids = [generate_change_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))
