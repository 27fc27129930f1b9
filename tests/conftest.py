"""
Pytest configuration and fixtures for DocuChunk tests.
"""

import pytest

from docuchunk.utils import setup_logger

# Set up logging for tests
setup_logger("docuchunk", level="INFO")


@pytest.fixture
def requirements_doc() -> str:
    """A small requirements document with a TOC, numbered sections and a glossary."""
    return "\n".join([
        "Table of Contents",
        "Introduction ........ 1",
        "Scope ........ 2",
        "Glossary ........ 3",
        "",
        "1. Introduction",
        "This document describes the braking controller.",
        "1.1 Scope",
        "The controller shall stop the vehicle within 40 meters.",
        "The API exposes the braking state to other ECU software.",
        "1.2 Safety Goals",
        "Every hazard is rated with an ASIL.",
        "2. Architecture",
        "The ECU component talks to the sensor interface.",
        "GLOSSARY",
        "API: Application Programming Interface",
        "ECU - Electronic Control Unit",
        "ASIL  Automotive Safety Integrity Level",
    ])


@pytest.fixture
def scenario_doc() -> str:
    """Two numbered sections, each a single sentence."""
    return "1. Introduction\nThe system shall support X.\n2. Design\nThe module interfaces with Y."


@pytest.fixture
def paged_raw_text() -> str:
    """Raw extracted text of four pages with a running header and footer."""
    pages = []
    for number in range(1, 5):
        pages.append("\n".join([
            "ACME Corp Confidential",
            f"Body text of page {number}   with   extra   spaces.",
            f"Page {number} of 4",
            f"Revision 3 - page {number}",
        ]))
    return "\n\nPAGE_BREAK\n\n".join(pages)
