#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/utils/decorators.py
"""Utility decorators for the docxmd converters.

The converters import python-docx, BeautifulSoup and mistune lazily, inside
the methods that need them. ``requires_dependencies`` checks those imports
before the method body runs, so a missing package surfaces as a
``DependencyError`` with an install hint instead of a bare ``ImportError``
from deep inside a tag handler.

"""

from __future__ import annotations

import importlib
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Sequence

from docxmd.exceptions import DependencyError
from docxmd.utils.packages import check_version_requirement

Requirement = tuple[str, str, str]


def find_dependency_problems(
    packages: Sequence[Requirement],
) -> tuple[list[tuple[str, str]], list[tuple[str, str, str]], ImportError | None]:
    """Check ``(install_name, import_name, version_spec)`` requirements.

    Returns
    -------
    tuple
        ``(missing, outdated, first_import_error)`` where ``missing`` holds
        ``(install_name, version_spec)`` pairs and ``outdated`` holds
        ``(install_name, version_spec, installed_version)`` triples

    """
    missing: list[tuple[str, str]] = []
    outdated: list[tuple[str, str, str]] = []
    first_error: ImportError | None = None

    for install_name, import_name, version_spec in packages:
        try:
            importlib.import_module(import_name)
        except ImportError as e:
            missing.append((install_name, version_spec))
            first_error = first_error or e
            continue

        if version_spec:
            satisfied, installed = check_version_requirement(install_name, version_spec)
            if not satisfied:
                outdated.append((install_name, version_spec, installed or "unknown"))

    return missing, outdated, first_error


def requires_dependencies(direction: str, packages: Sequence[Requirement]) -> Callable:
    """Raise ``DependencyError`` before a conversion method runs without its packages.

    Parameters
    ----------
    direction : str
        Conversion direction shown in the error ("html2docx", "docx2markdown", ...)
    packages : sequence of (install_name, import_name, version_spec)
        For example ``("python-docx", "docx", ">=1.2.0")``; an empty
        ``version_spec`` accepts any installed version

    Examples
    --------
        >>> @requires_dependencies("docx2markdown", [("python-docx", "docx", ">=1.2.0")])
        ... def walk(self, document):
        ...     from docx.oxml.ns import qn

    """

    def decorator(method: Callable) -> Callable:
        @wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing, outdated, import_error = find_dependency_problems(packages)
            if missing or outdated:
                raise DependencyError(direction, missing, outdated, original_import_error=import_error) from import_error
            return method(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Log how long the ``with`` block took, at DEBUG level only."""
    if not logger.isEnabledFor(logging.DEBUG):
        yield
        return

    start = time.perf_counter()
    yield
    logger.debug(f"{operation} took {(time.perf_counter() - start) * 1000:.1f} ms")
