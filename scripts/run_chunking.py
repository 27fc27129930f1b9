#!/usr/bin/env python
"""
Script to chunk a document with DocuChunk.

Reads a PDF (extracted page by page) or a plain text file, cleans the text
with the default cleaning rules (or those of a --rules JSON file) and writes
the chunk list as JSON.

Usage:
    python scripts/run_chunking.py --input requirements.pdf --model Claude --overlap 200
"""

import os
import sys
import argparse
from typing import List, Optional

# Add the parent directory to the path so we can import docuchunk
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from docuchunk import TextChunker, chunks_to_json, setup_logger
from docuchunk.config_loader import get_chunking_config
from document_processing.content_filter import apply_cleaning_rules, load_cleaning_options


def default_output_path(input_path: str) -> str:
    """Derive the JSON output path from the input file name."""
    if input_path.lower().endswith('.pdf'):
        return input_path[:-4] + '.json'
    return f"{input_path}.json"


def read_document(input_path: str) -> str:
    """Return the raw text of a PDF or text document."""
    if input_path.lower().endswith('.pdf'):
        from document_processing.pdf_parser import extract_text_with_page_breaks
        return extract_text_with_page_breaks(input_path)
    with open(input_path, "r", encoding="utf-8") as f:
        return f.read()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    config = get_chunking_config()
    parser = argparse.ArgumentParser(description="Chunk a document into context-window sized, structured chunks")

    parser.add_argument("--input", required=True, help="PDF or text file to chunk")
    parser.add_argument("--output", help="JSON output path (default: input name with .json)")
    parser.add_argument("--model", choices=sorted(config.model_context_windows),
                        help="Target model; selects its default context window")
    parser.add_argument("--context-window", type=int, help="Maximum estimated tokens per chunk")
    parser.add_argument("--overlap", type=int, default=config.chunk_overlap,
                        help=f"Overlap between chunks in estimated tokens (default: {config.chunk_overlap})")
    parser.add_argument("--rules", help="JSON file with standard rule toggles and custom find/replace rules")
    parser.add_argument("--no-clean", action="store_true", help="Chunk the text without applying cleaning rules")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_args(argv)
    setup_logger("docuchunk", level=args.log_level)
    setup_logger("document_processing", level=args.log_level)

    if not os.path.isfile(args.input):
        print(f"[ERROR] Input file not found: {args.input}")
        return 1

    config = get_chunking_config()
    if args.context_window is not None:
        context_window = args.context_window
    elif args.model:
        context_window = config.context_window_for_model(args.model)
    else:
        context_window = config.context_window

    try:
        chunker = TextChunker(context_window=context_window, overlap=args.overlap)
    except ValueError as e:
        print(f"[ERROR] Invalid chunking parameters: {e}")
        return 1

    cleaning_options = None
    if args.rules:
        try:
            cleaning_options = load_cleaning_options(args.rules)
        except (OSError, ValueError) as e:
            print(f"[ERROR] Could not load cleaning rules from {args.rules}: {e}")
            return 1

    text = read_document(args.input)
    if config.enable_cleaning and not args.no_clean:
        text = apply_cleaning_rules(text, cleaning_options)

    chunks = chunker.chunk_text(text)

    output_path = args.output or default_output_path(args.input)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(chunks_to_json(chunks))

    print(f"[INFO] Wrote {len(chunks)} chunks to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
