"""
Structure-aware text chunking for DocuChunk.

This module turns cleaned document text into an ordered list of chunks:
1. A single forward pass over the lines (SegmentationEngine) that tracks the
   active section, splits on section headers and on the token budget, and
   carries an overlap tail from one chunk into the next
2. Parent/child linkage from dotted section ids ("2.1" is a child of "2")
   and from budget continuations (children of their section's first chunk)
3. A post-pass (CrossReferenceProcessor) adding adjacency relations and
   glossary terms, which are only known once every chunk exists
4. A TextChunker front end that resolves settings and builds the lookup tables

All state lives in the objects created for one call, so repeated calls with
the same input produce identical chunk lists.
"""

import re
import math
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .chunk import Chunk, ChunkMetadata
from .config_loader import get_chunking_config
from .semantic import classify_content
from .structure import HeaderInfo, build_lookup_tables, detect_section_header
from .text_utils import CHARS_PER_TOKEN, DEFAULT_KEYWORD_COUNT, estimate_tokens, extract_keywords

logger = logging.getLogger(__name__)


@dataclass
class SectionInfo:
    """The section the engine is currently inside."""
    id: Optional[str] = None
    title: Optional[str] = None
    section: Optional[str] = None
    parent_id: Optional[str] = None

    def enter(self, header: HeaderInfo):
        """Switch to the section introduced by ``header``."""
        self.id = header.id
        self.title = header.title
        self.section = header.raw
        self.parent_id = None


class SectionHistory:
    """
    Append-only log of the first chunk created for each section id.
    """
    def __init__(self):
        self._entries: List[Tuple[str, str]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, section_id: Optional[str], chunk_id: str) -> bool:
        """
        Register ``chunk_id`` as the opening chunk of ``section_id``.

        Returns:
            bool: False when the section has no id or was registered before
        """
        if not section_id or self.first_chunk_for(section_id) is not None:
            return False
        self._entries.append((section_id, chunk_id))
        return True

    def first_chunk_for(self, section_id: Optional[str]) -> Optional[str]:
        for entry_id, chunk_id in self._entries:
            if entry_id == section_id:
                return chunk_id
        return None

    def latest_chunk_for(self, section_id: Optional[str]) -> Optional[str]:
        for entry_id, chunk_id in reversed(self._entries):
            if entry_id == section_id:
                return chunk_id
        return None


class ContentBuffer:
    """Pending lines of the chunk being built, with a running character count."""
    def __init__(self, lines: Optional[List[str]] = None):
        self.lines: List[str] = []
        self.char_count = 0
        for line in lines or []:
            self.append(line)

    def __len__(self) -> int:
        return len(self.lines)

    def append(self, line: str):
        if self.lines:
            self.char_count += 1  # joining newline
        self.char_count += len(line)
        self.lines.append(line)

    @property
    def token_count(self) -> int:
        return math.ceil(self.char_count / CHARS_PER_TOKEN)

    def text(self) -> str:
        return '\n'.join(self.lines)


@dataclass
class SegmentationState:
    """Mutable state of one segmentation pass."""
    section: SectionInfo = field(default_factory=SectionInfo)
    buffer: ContentBuffer = field(default_factory=ContentBuffer)
    history: SectionHistory = field(default_factory=SectionHistory)
    chunks: List[Chunk] = field(default_factory=list)
    chunk_index: int = 1


class SegmentationEngine:
    """
    Splits text into chunks in one forward pass over its lines.

    A chunk is closed when a header line starts a new section, or when adding a
    (non-header) line would push the buffer past the context window. Header
    lines are never budget-checked, and a single line is never split, so one
    oversized line still becomes one chunk.
    """
    def __init__(
        self,
        context_window: int,
        overlap: int = 0,
        toc: Optional[Dict[str, str]] = None,
        keyword_count: int = DEFAULT_KEYWORD_COUNT,
    ):
        """
        Initialize the engine.

        Args:
            context_window: Maximum estimated tokens per chunk
            overlap: Desired overlap in estimated tokens (converted to words at 4 characters per token)
            toc: Table of contents map (clean title -> raw line) for toc_reference lookups
            keyword_count: Number of keywords to keep per chunk
        """
        self.context_window = context_window
        self.overlap = overlap
        self.toc = toc or {}
        self.keyword_count = keyword_count

    def segment(self, text: str) -> List[Chunk]:
        """
        Segment text into chunks.

        Args:
            text: Cleaned document text

        Returns:
            List[Chunk]: Chunks in creation order, without cross-references
        """
        if not text:
            return []

        state = SegmentationState()
        for line in text.split('\n'):
            header = detect_section_header(line)
            if header.is_header:
                self._start_section(state, line, header)
            elif len(state.buffer) > 0 and self._exceeds_budget(state.buffer, line):
                self._continue_section(state, line)
            else:
                state.buffer.append(line)

        if len(state.buffer) > 0:
            self._finalize(state, state.buffer.text())

        logger.debug(f"Segmented {len(text)} characters into {len(state.chunks)} chunks "
                     f"({len(state.history)} numbered sections)")
        return state.chunks

    def _exceeds_budget(self, buffer: ContentBuffer, line: str) -> bool:
        return buffer.token_count + estimate_tokens(line) > self.context_window

    def overlap_tail(self, text: str) -> str:
        """
        Return the trailing words of ``text`` carried into the next chunk.

        Args:
            text: Content of the chunk that was just closed

        Returns:
            str: The last ``overlap // 4`` whitespace-delimited words joined by
            spaces, or an empty string when overlap is disabled
        """
        word_count = self.overlap // CHARS_PER_TOKEN
        if self.overlap <= 0 or word_count <= 0:
            return ''
        return ' '.join(text.split()[-word_count:])

    def _restart_buffer(self, closed_text: str, *lines: str) -> ContentBuffer:
        tail = self.overlap_tail(closed_text)
        seed = [tail] if tail else []
        return ContentBuffer(seed + list(lines))

    def _start_section(self, state: SegmentationState, line: str, header: HeaderInfo):
        closed_text = state.buffer.text()
        if len(state.buffer) > 0:
            self._finalize(state, closed_text)

        state.buffer = self._restart_buffer(closed_text)
        state.section.enter(header)
        state.buffer.append(line)

    def _continue_section(self, state: SegmentationState, line: str):
        closed_text = state.buffer.text()
        self._finalize(state, closed_text)

        state.buffer = self._restart_buffer(closed_text, line)

        # Continuation chunks hang off the chunk that opened their section
        section_start = state.history.first_chunk_for(state.section.id)
        if section_start:
            state.section.parent_id = section_start

    def _resolve_parent(self, state: SegmentationState, title: str):
        section = state.section
        if section.id:
            id_parts = section.id.split('.')
            if len(id_parts) > 1:
                parent_chunk = state.history.latest_chunk_for('.'.join(id_parts[:-1]))
                if parent_chunk:
                    section.parent_id = parent_chunk
        elif state.chunks:
            # Unnumbered section: follow the previous chunk when it has the same title
            last_chunk = state.chunks[-1]
            if last_chunk.title == title:
                section.parent_id = last_chunk.metadata.parent_id

    def _finalize(self, state: SegmentationState, content: str) -> Optional[str]:
        """
        Turn buffered content into a chunk.

        Returns:
            Optional[str]: The new chunk id, or None when the content is blank
        """
        trimmed = content.strip()
        if not trimmed:
            return None

        chunk_id = f"C{state.chunk_index}"
        section = state.section
        title = section.title or f"Chunk {state.chunk_index}"

        self._resolve_parent(state, title)
        label = classify_content(content)

        chunk = Chunk(
            chunk_id=chunk_id,
            title=title,
            content=trimmed,
            metadata=ChunkMetadata(
                parent_id=section.parent_id,
                section=section.section,
                section_id=section.id,
                keywords=extract_keywords(content, self.keyword_count),
                toc_reference=self.toc.get(title),
                semantic_label=label.label,
                semantic_label_reason=label.reason,
            ),
        )
        state.chunks.append(chunk)
        state.history.record(section.id, chunk_id)
        state.chunk_index += 1

        logger.debug(f"Finalized {chunk_id} '{title}' ({chunk.metadata.token_count} tokens, "
                     f"parent={chunk.metadata.parent_id})")
        return chunk_id


class CrossReferenceProcessor:
    """
    Adds relations that need the complete chunk list: parent/previous/next
    links and glossary terms used in each chunk.
    """
    def __init__(self, glossary: Optional[Dict[str, str]] = None):
        """
        Initialize the cross-reference processor.

        Args:
            glossary: term -> definition map; terms match as whole, case-sensitive words
        """
        self.glossary = dict(glossary or {})
        self._term_patterns = [
            (term, definition, re.compile(r'\b' + re.escape(term) + r'\b'))
            for term, definition in self.glossary.items()
        ]

    def related_chunk_ids(self, chunks: List[Chunk], index: int) -> List[str]:
        """Parent, previous and next chunk ids of ``chunks[index]``, without duplicates."""
        chunk = chunks[index]
        related: List[str] = []
        parent_id = chunk.metadata.parent_id
        if parent_id and parent_id != chunk.chunk_id:
            related.append(parent_id)
        if index > 0:
            related.append(chunks[index - 1].chunk_id)
        if index < len(chunks) - 1:
            related.append(chunks[index + 1].chunk_id)
        return list(dict.fromkeys(related))

    def resolve_glossary_terms(self, content: str) -> Dict[str, str]:
        """Glossary entries whose term occurs in ``content``."""
        return {
            term: definition
            for term, definition, pattern in self._term_patterns
            if pattern.search(content)
        }

    def process_chunks(self, chunks: List[Chunk]) -> List[Chunk]:
        """
        Fill ``related_chunks`` and ``resolved_glossary_terms`` for every chunk.

        Args:
            chunks: Finalized chunks in creation order

        Returns:
            List[Chunk]: The same chunks, updated in place
        """
        if not chunks:
            return []

        for index, chunk in enumerate(chunks):
            chunk.metadata.related_chunks = self.related_chunk_ids(chunks, index)
            chunk.metadata.resolved_glossary_terms = self.resolve_glossary_terms(chunk.content)

        resolved = sum(1 for chunk in chunks if chunk.metadata.resolved_glossary_terms)
        logger.debug(f"Cross-referenced {len(chunks)} chunks, {resolved} with glossary terms")
        return chunks


class TextChunker:
    """
    Main class orchestrating lookup-table construction, segmentation and cross-referencing.
    """
    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        context_window: Optional[int] = None,
        overlap: Optional[int] = None,
        keyword_count: Optional[int] = None,
    ):
        """
        Initialize the TextChunker.

        Args:
            config: Optional configuration dictionary for overrides.
            context_window: Maximum estimated tokens per chunk (overrides config)
            overlap: Overlap between consecutive chunks in estimated tokens (overrides config)
            keyword_count: Keywords kept per chunk (overrides config)
        """
        self.config = config if config is not None else {}
        chunking_config = get_chunking_config()

        self.context_window = context_window if context_window is not None else self.config.get('context_window', chunking_config.context_window)
        self.overlap = overlap if overlap is not None else self.config.get('overlap', chunking_config.chunk_overlap)
        self.keyword_count = keyword_count if keyword_count is not None else self.config.get('keyword_count', chunking_config.keyword_count)

        self.validate_config()

    def validate_config(self):
        """Validates the chunker configuration."""
        if self.context_window <= 0:
            raise ValueError(f"context_window must be a positive integer, got {self.context_window}")
        if self.overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {self.overlap}")
        if self.keyword_count < 0:
            raise ValueError(f"keyword_count must be non-negative, got {self.keyword_count}")
        if self.overlap >= self.context_window:
            logger.warning(
                f"Chunk overlap ({self.overlap}) is >= context window ({self.context_window}). "
                f"Every chunk will repeat most of its predecessor."
            )

    def chunk_text(self, text: Optional[str]) -> List[Chunk]:
        """
        Chunk cleaned document text.

        Args:
            text: Text to chunk (already cleaned)

        Returns:
            List[Chunk]: Chunks in creation order with cross-references resolved
        """
        if not text or not text.strip():
            logger.info("Input text is empty, returning no chunks.")
            return []

        toc, glossary = build_lookup_tables(text)
        logger.info(f"Starting chunking: {len(text)} characters, context window {self.context_window}, "
                    f"overlap {self.overlap}, {len(toc)} TOC entries, {len(glossary)} glossary terms")

        engine = SegmentationEngine(
            self.context_window,
            self.overlap,
            toc=toc,
            keyword_count=self.keyword_count,
        )
        chunks = engine.segment(text)
        chunks = CrossReferenceProcessor(glossary).process_chunks(chunks)

        logger.info(f"Finalized {len(chunks)} chunks")
        return chunks


def perform_local_chunking(
    text: Optional[str],
    context_window: int,
    overlap: int,
    keyword_count: int = DEFAULT_KEYWORD_COUNT,
) -> List[Chunk]:
    """
    Chunk text with explicit parameters.

    Args:
        text: Cleaned document text; empty or None yields no chunks
        context_window: Maximum estimated tokens per chunk
        overlap: Overlap in estimated tokens
        keyword_count: Keywords kept per chunk

    Returns:
        List[Chunk]: The chunk list
    """
    chunker = TextChunker(context_window=context_window, overlap=overlap, keyword_count=keyword_count)
    return chunker.chunk_text(text)
