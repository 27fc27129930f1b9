"""
DocuChunk: structure-aware chunking of extracted document text.

This package detects section headers, the table of contents and the glossary
in cleaned text, splits it into context-window sized chunks and annotates each
chunk with keywords, a semantic label and links to related chunks.
"""

from .chunk import Chunk, ChunkMetadata, chunks_to_json
from .semantic import SEMANTIC_LABELS, classify_content
from .structure import detect_section_header, parse_glossary, parse_table_of_contents
from .text_chunker import CrossReferenceProcessor, SegmentationEngine, TextChunker, perform_local_chunking
from .text_utils import estimate_tokens, extract_keywords
from .utils import setup_logger

__all__ = [
    'Chunk',
    'ChunkMetadata',
    'chunks_to_json',
    'SEMANTIC_LABELS',
    'classify_content',
    'detect_section_header',
    'parse_glossary',
    'parse_table_of_contents',
    'CrossReferenceProcessor',
    'SegmentationEngine',
    'TextChunker',
    'perform_local_chunking',
    'estimate_tokens',
    'extract_keywords',
    'setup_logger',
]
