#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/exceptions.py
"""Exceptions raised by docxmd.

Exception Hierarchy
-------------------
- DocxMdError

  - ValidationError (bad arguments, option values or image side-tables)

  - FileError (a path that cannot be read or written)
    - MalformedFileError (not a readable .docx package)

  - ParsingError (the Markdown to HTML stage failed)

  - RenderingError (building or saving the Word document failed)
    - UnsupportedImageFormatError (``<img>`` with an extension Word cannot embed)

  - DependencyError (python-docx, beautifulsoup4 or mistune missing or too old)

Recovered problems (unresolvable images, unsafe links, stray table tags)
are logged rather than raised; see the converters.

"""

from typing import Any


class DocxMdError(Exception):
    """Base class of every docxmd error.

    Parameters
    ----------
    message : str
        Error description
    original_error : Exception, optional
        Exception this error wraps

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(DocxMdError):
    """An argument of a public function is unusable.

    ``parameter_name`` names the argument (``"files"``, ``"images"``) and
    ``parameter_value`` holds the offending value or record.
    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class FileError(DocxMdError):
    """A file (input document, template, image directory) could not be accessed.

    ``file_path`` is None when the data came from a stream or bytes.
    """

    def __init__(self, message: str, file_path: str | None = None, original_error: Exception | None = None):
        super().__init__(message, original_error=original_error)
        self.file_path = file_path


class MalformedFileError(FileError):
    """The input or template is not a .docx package python-docx can open."""


class ParsingError(DocxMdError):
    """The source text could not be turned into HTML.

    ``parsing_stage`` is ``"markdown"`` for mistune failures.
    """

    def __init__(self, message: str, parsing_stage: str | None = None, original_error: Exception | None = None):
        super().__init__(message, original_error)
        self.parsing_stage = parsing_stage


class RenderingError(DocxMdError):
    """The Word document could not be built or saved.

    ``rendering_stage`` is ``"html2docx"`` when the dispatcher or the package
    writer failed unexpectedly and ``"image"`` for image embedding problems.
    """

    def __init__(self, message: str, rendering_stage: str | None = None, original_error: Exception | None = None):
        super().__init__(message, original_error)
        self.rendering_stage = rendering_stage


class UnsupportedImageFormatError(RenderingError):
    """An ``<img>`` source has an extension other than bmp, gif, jpg, jpeg, png or svg.

    Unlike a missing or undecodable image, which is replaced by a placeholder,
    this aborts the conversion.

    Parameters
    ----------
    src : str
        ``src`` attribute of the image
    extension : str
        Extension found on ``src``, possibly empty

    """

    def __init__(self, src: str, extension: str):
        super().__init__(f"Unsupported image format '{extension or '<none>'}' for image '{src}'", rendering_stage="image")
        self.src = src
        self.extension = extension


def _requirement(name: str, spec: str) -> str:
    return f"{name}{spec}" if spec else name


class DependencyError(DocxMdError):
    """A conversion direction needs packages that are missing or outdated.

    Parameters
    ----------
    direction : str
        Conversion direction that was attempted, e.g. ``"html2docx"``
    missing_packages : list of (install_name, version_spec)
        Packages that could not be imported
    version_mismatches : list of (install_name, version_spec, installed_version), optional
        Packages installed at a version outside ``version_spec``
    original_import_error : ImportError, optional
        First import failure encountered

    """

    def __init__(
        self,
        direction: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        original_import_error: ImportError | None = None,
    ):
        version_mismatches = version_mismatches or []
        lines = []
        if missing_packages:
            names = ", ".join(_requirement(name, spec) for name, spec in missing_packages)
            lines.append(f"{direction} needs packages that are not installed: {names}")
        for name, spec, installed in version_mismatches:
            lines.append(f"{direction} needs {name}{spec}, found {installed}")

        wanted = [_requirement(name, spec) for name, spec in missing_packages]
        wanted += [_requirement(name, spec) for name, spec, _ in version_mismatches]
        if wanted:
            lines.append("Install with: pip install --upgrade " + " ".join(f'"{item}"' for item in wanted))

        super().__init__("\n".join(lines), original_error=original_import_error)
        self.direction = direction
        self.missing_packages = missing_packages
        self.version_mismatches = version_mismatches
        self.original_import_error = original_import_error
