"""Brain: documents, a knowledge graph and an assistant that proposes reviewed edits."""

__version__ = "0.1.0"
