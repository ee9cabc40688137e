"""
ID generation utilities for Brain.

Every record type gets a short prefix followed by 12 hex characters:
- Documents: doc_xxx, document versions: ver_xxx
- Changes: chg_xxx, change resolutions: res_xxx
- Sessions: ses_xxx, messages: msg_xxx
- Entities: ent_xxx, relationships: rel_xxx
- Transcripts: trn_xxx
"""

from uuid import uuid4


def _generate(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def generate_document_id() -> str:
    """
    Generate unique Document ID.

    Returns:
        ID in format "doc_xxx" where xxx is 12 hex characters
    """
    return _generate("doc")


def generate_version_id() -> str:
    """Generate unique DocumentVersion ID ("ver_xxx")."""
    return _generate("ver")


def generate_change_id() -> str:
    """
    Generate unique Change ID.

    Used both for queued changes and for persisted change records.

    Returns:
        ID in format "chg_xxx" where xxx is 12 hex characters
    """
    return _generate("chg")


def generate_resolution_id() -> str:
    """Generate unique ChangeResolution ID ("res_xxx")."""
    return _generate("res")


def generate_session_id() -> str:
    """Generate unique Session ID ("ses_xxx")."""
    return _generate("ses")


def generate_message_id() -> str:
    """Generate unique Message ID ("msg_xxx")."""
    return _generate("msg")


def generate_entity_id() -> str:
    """
    Generate unique Entity ID.

    Returns:
        ID in format "ent_xxx" where xxx is 12 hex characters
    """
    return _generate("ent")


def generate_relationship_id() -> str:
    """Generate unique Relationship ID ("rel_xxx")."""
    return _generate("rel")


def generate_transcript_id() -> str:
    """Generate unique Transcript ID ("trn_xxx")."""
    return _generate("trn")
