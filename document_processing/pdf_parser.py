"""
PDF text extraction module for DocuChunk.

This module extracts the text of a PDF page by page using PyMuPDF (fitz) and
joins the pages with a ``PAGE_BREAK`` sentinel line so that later cleaning
steps can work per page (running headers and footers) before the markers are
removed.
"""
import os
import logging
from typing import List

# Import PyMuPDF
import fitz

from .content_filter import PAGE_BREAK

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = f"\n\n{PAGE_BREAK}\n\n"


def _validate_pdf_path(pdf_path: str):
    if not os.path.exists(pdf_path):
        logger.error(f"PDF file not found: {pdf_path}")
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    if not pdf_path.lower().endswith('.pdf'):
        logger.error(f"File is not a PDF: {pdf_path}")
        raise ValueError(f"File is not a PDF: {pdf_path}")


def extract_page_texts(pdf_path: str) -> List[str]:
    """
    Extract the plain text of every page of a PDF.

    Args:
        pdf_path (str): Path to the PDF file

    Returns:
        List[str]: One string per page, in page order (empty pages included)

    Raises:
        FileNotFoundError: If the PDF file does not exist
        ValueError: If the file is not a valid PDF
    """
    logger.debug(f"Extracting page texts from PDF: {pdf_path}")
    _validate_pdf_path(pdf_path)

    page_texts = []
    try:
        with fitz.open(pdf_path) as pdf_document:
            for page_num, page in enumerate(pdf_document):
                page_text = page.get_text("text")
                if not page_text.strip():
                    logger.debug(f"Page {page_num + 1} appears to be empty or contains only images")
                page_texts.append(page_text.strip())
    except fitz.FileDataError as e:
        logger.error(f"Invalid or corrupted PDF file: {pdf_path}. Error: {str(e)}")
        raise ValueError(f"Invalid or corrupted PDF file: {pdf_path}. Error: {str(e)}") from e

    logger.info(f"Extracted text from {len(page_texts)} pages of {pdf_path}")
    return page_texts


def extract_text_with_page_breaks(pdf_path: str) -> str:
    """
    Extract the text of a PDF as a single string with page sentinels.

    Pages are separated by a blank line, a ``PAGE_BREAK`` line and another
    blank line.

    Args:
        pdf_path (str): Path to the PDF file

    Returns:
        str: Extracted text

    Raises:
        FileNotFoundError: If the PDF file does not exist
        ValueError: If the file is not a valid PDF
    """
    return PAGE_SEPARATOR.join(extract_page_texts(pdf_path))
