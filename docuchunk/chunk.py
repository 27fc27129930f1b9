"""
Chunk data model.

A chunk is created once by the segmentation engine; afterwards only its
``related_chunks`` and ``resolved_glossary_terms`` metadata are filled in by
the cross-reference post-pass. Serialized chunks reference each other by id
only, so a chunk list converts to plain JSON without cycles.
"""

import json
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

from .text_utils import estimate_tokens


@dataclass
class ChunkMetadata:
    """Structural placement and derived annotations of a chunk."""
    parent_id: Optional[str] = None  # chunk_id of an earlier chunk
    section: Optional[str] = None  # raw header line of the active section
    section_id: Optional[str] = None  # dotted identifier, e.g. "2.1.3"
    keywords: List[str] = field(default_factory=list)
    related_chunks: List[str] = field(default_factory=list)
    toc_reference: Optional[str] = None
    resolved_glossary_terms: Dict[str, str] = field(default_factory=dict)
    semantic_label: str = "Uncategorized"
    semantic_label_reason: Optional[str] = None
    char_count: int = 0
    token_count: int = 0


class Chunk:
    """
    A bounded span of document text plus its metadata.
    """
    def __init__(
        self,
        chunk_id: str,
        title: str,
        content: str,
        metadata: Optional[ChunkMetadata] = None,
    ):
        """
        Initialize a chunk.

        Args:
            chunk_id: Unique, generation-ordered identifier ("C1", "C2", ...)
            title: Title of the section the chunk belongs to
            content: Trimmed text of the chunk
            metadata: Structural and derived metadata; counts are recomputed from content
        """
        self.chunk_id = chunk_id
        self.title = title
        self.content = content
        self.metadata = metadata or ChunkMetadata()
        self.metadata.char_count = len(content)
        self.metadata.token_count = estimate_tokens(content)

    def __repr__(self) -> str:
        return f"Chunk(chunk_id={self.chunk_id!r}, title={self.title!r}, tokens={self.metadata.token_count})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chunk):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def parent_id(self) -> Optional[str]:
        return self.metadata.parent_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert the chunk to a dictionary representation."""
        return {
            "chunk_id": self.chunk_id,
            "title": self.title,
            "content": self.content,
            "metadata": asdict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        """
        Rebuild a chunk from its dictionary representation.

        Args:
            data: A dict as produced by ``to_dict`` (unknown metadata keys are ignored)

        Returns:
            Chunk: The restored chunk
        """
        known_fields = ChunkMetadata.__dataclass_fields__
        raw_metadata = data.get("metadata") or {}
        metadata = ChunkMetadata(**{k: v for k, v in raw_metadata.items() if k in known_fields})
        return cls(
            chunk_id=data["chunk_id"],
            title=data["title"],
            content=data["content"],
            metadata=metadata,
        )


def chunks_to_json(chunks: List[Chunk], indent: Optional[int] = 2) -> str:
    """Serialize a chunk list to a JSON array."""
    return json.dumps([chunk.to_dict() for chunk in chunks], indent=indent, ensure_ascii=False)
