"""Pytest configuration and shared fixtures for the docxmd test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

from pathlib import Path
from typing import Generator

import pytest
from utils import MINIMAL_PNG_BYTES, cleanup_test_dir, create_test_temp_dir


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "docx: Tests that build or read Word documents")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields
    ------
    Path
        Temporary directory path that will be cleaned up after test.

    """
    temp_path = create_test_temp_dir()
    try:
        yield temp_path
    finally:
        cleanup_test_dir(temp_path)


@pytest.fixture
def png_table() -> dict:
    """Provide an image side-table holding one 1x1 PNG under ``images/logo.png``.

    Returns
    -------
    dict
        Side-table mapping ``images/<name>`` to the hex-encoded payload.

    """
    return {"images/logo.png": MINIMAL_PNG_BYTES.hex()}


@pytest.fixture
def sample_markdown() -> str:
    """Provide sample Markdown content for conversion tests.

    Returns
    -------
    str
        Markdown using headings, emphasis, lists, a quote, code and a table.

    """
    return """# Sample Document

This is a **sample document** with *italic text* and a [link](https://example.com).

## Lists

- Item 1
- Item 2

1. First item
2. Second item

> Quoted text

```
def hello_world():
    print("Hello, World!")
```

| Header 1 | Header 2 |
|----------|----------|
| Row 1    | Data 1   |
"""
