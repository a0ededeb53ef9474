#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/utils/__init__.py
"""Shared helpers: dependency checks, image decoding and Markdown escaping."""
