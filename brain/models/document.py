"""
Document models for the knowledge layer.

A Document is an HTML body plus an optional frontmatter block. The block is
split out when content is read and re-joined when it is written, so
`content` never carries the `---` delimiters.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Document(BaseModel):
    """
    Editable knowledge document.

    `frontmatter` is the parsed key/value view of the leading block;
    `frontmatter_raw` is the block text exactly as it was read and is what
    gets written back, so parsing never reformats the user's frontmatter.
    """

    # Core identity
    id: str = Field(..., description="Unique document ID (doc_xxx)")
    path: str = Field(..., description="Hierarchical path, unique across live documents")
    title: str = Field(..., description="Document title")

    # Content
    content: str = Field(default="", description="HTML body without frontmatter")
    frontmatter: dict[str, str] = Field(
        default_factory=dict, description="Parsed `key: value` pairs of the frontmatter block"
    )
    frontmatter_raw: str | None = Field(
        default=None, description="Verbatim frontmatter block text (None if absent)"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    def has_frontmatter(self) -> bool:
        """
        Check if the document carries a frontmatter block.

        Returns:
            True if a raw frontmatter block is present
        """
        return bool(self.frontmatter_raw)


class DocumentVersion(BaseModel):
    """Snapshot of a document's serialized content taken before an update."""

    id: str = Field(..., description="Unique version ID (ver_xxx)")
    document_id: str = Field(..., description="Document the snapshot belongs to")
    content: str = Field(..., description="Serialized content (frontmatter included)")
    created_at: datetime = Field(default_factory=datetime.now, description="Snapshot timestamp")
