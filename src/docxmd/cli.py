#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Command-line interface for docxmd.

Examples
--------
Markdown to DOCX:
    $ docxmd to-docx notes.md -o notes.docx --images images.json

Using a template and endnotes for acronyms:
    $ docxmd to-docx notes.md --template corporate.docx --acronym-position endnote

DOCX to Markdown, extracting images:
    $ docxmd to-md notes.docx -o notes.md --image-dir images

Exit codes: 0 success, 1 conversion error, 2 usage error, 3 missing input file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import MISSING, fields
from pathlib import Path
from typing import Any, Optional

from docxmd.exceptions import DocxMdError
from docxmd.logging_utils import configure_logging
from docxmd.options.docx import DocxToMarkdownOptions, HtmlToDocxOptions

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE_ERROR = 2
EXIT_FILE_ERROR = 3

# Option fields exposed per sub-command; the rest keep their defaults
_TO_DOCX_FIELDS = (
    "acronym_position",
    "exclude_link_anchor",
    "table_caption_position",
    "heading_numbering",
    "html_parser",
    "fail_on_resource_errors",
)
_TO_MD_FIELDS = ("image_path_prefix", "header_divider_scope", "hyperlink_pairing", "code_fence")


def _get_version() -> str:
    from docxmd import __version__

    return __version__


def _add_option_arguments(parser: argparse.ArgumentParser, options_class: type, names: tuple[str, ...]) -> None:
    """Add one argument per options field, using the field metadata for help text and choices."""
    for option_field in fields(options_class):
        if option_field.name not in names:
            continue
        metadata = option_field.metadata
        flag = "--" + metadata.get("cli_name", option_field.name.replace("_", "-"))
        default = option_field.default if option_field.default is not MISSING else None

        if isinstance(default, bool):
            if default:
                parser.add_argument(
                    "--no-" + flag[2:],
                    dest=option_field.name,
                    action="store_false",
                    default=argparse.SUPPRESS,
                    help=f"Disable: {metadata.get('help', '')}",
                )
            else:
                parser.add_argument(
                    flag,
                    dest=option_field.name,
                    action="store_true",
                    default=argparse.SUPPRESS,
                    help=metadata.get("help"),
                )
            continue

        parser.add_argument(
            flag,
            dest=option_field.name,
            choices=metadata.get("choices"),
            default=argparse.SUPPRESS,
            help=f"{metadata.get('help', '')} (default: {default})",
        )


def _collect_options(parsed_args: argparse.Namespace, names: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(parsed_args, name) for name in names if hasattr(parsed_args, name)}


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the ``to-docx`` and ``to-md`` sub-commands."""
    parser = argparse.ArgumentParser(
        prog="docxmd",
        description="Convert Markdown to Word documents and Word documents back to Markdown.",
    )
    parser.add_argument("--version", action="version", version=f"docxmd {_get_version()}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", type=str, help="Also write log messages to this file")
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and timing")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    to_docx = subparsers.add_parser("to-docx", help="Convert a Markdown file to DOCX")
    to_docx.add_argument("input", help="Markdown file")
    to_docx.add_argument("-o", "--out", help="Output .docx path (default: input with a .docx suffix)")
    to_docx.add_argument("--images", help="JSON image side-table ({'images/<name>': '<hex>'} or [{src, hex}])")
    to_docx.add_argument("--template", help="A .docx whose styles and numbering are reused")
    _add_option_arguments(to_docx, HtmlToDocxOptions, _TO_DOCX_FIELDS)
    to_docx.set_defaults(handler=_run_to_docx)

    to_md = subparsers.add_parser("to-md", help="Convert a DOCX file to Markdown")
    to_md.add_argument("input", help=".docx file")
    to_md.add_argument("-o", "--out", help="Output Markdown path (default: standard output)")
    to_md.add_argument("--image-dir", help="Directory receiving the extracted images")
    _add_option_arguments(to_md, DocxToMarkdownOptions, _TO_MD_FIELDS)
    to_md.set_defaults(handler=_run_to_md)

    return parser


def _run_to_docx(parsed_args: argparse.Namespace) -> int:
    from docxmd.api import markdown_to_docx

    source = Path(parsed_args.input)
    options = HtmlToDocxOptions(template_path=parsed_args.template, **_collect_options(parsed_args, _TO_DOCX_FIELDS))
    output = Path(parsed_args.out) if parsed_args.out else source.with_suffix(".docx")

    markdown = source.read_text(encoding="utf-8")
    markdown_to_docx(markdown, output=output, images=parsed_args.images, options=options)
    print(f"Converted {source} -> {output}")
    return EXIT_SUCCESS


def _run_to_md(parsed_args: argparse.Namespace) -> int:
    from docxmd.api import docx_to_markdown, save_images

    source = Path(parsed_args.input)
    options = DocxToMarkdownOptions(**_collect_options(parsed_args, _TO_MD_FIELDS))
    result = docx_to_markdown(source, options)

    if parsed_args.image_dir:
        save_images(result.images, parsed_args.image_dir)
    elif result.images:
        logger.info(f"{len(result.images)} image(s) not written; use --image-dir to extract them")

    if parsed_args.out:
        Path(parsed_args.out).write_text(result.markdown, encoding="utf-8")
        print(f"Converted {source} -> {parsed_args.out}")
    else:
        sys.stdout.write(result.markdown)
    return EXIT_SUCCESS


def main(args: Optional[list[str]] = None) -> int:
    """Run the command line; returns the process exit code."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    log_level = logging.DEBUG if parsed_args.trace else parsed_args.log_level
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    for path in (parsed_args.input, getattr(parsed_args, "template", None), getattr(parsed_args, "images", None)):
        if path and not Path(path).is_file():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return EXIT_FILE_ERROR

    try:
        return parsed_args.handler(parsed_args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    except DocxMdError as e:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
