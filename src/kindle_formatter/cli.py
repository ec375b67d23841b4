"""Command-line entry point for the Kindle newsletter formatter."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from kindle_formatter.assembly import CalibreTranscoder, find_calibre_path
from kindle_formatter.core import (
    AppSettings,
    ConverterError,
    configure_logging,
    load_app_settings,
)
from kindle_formatter.core.models import BatchReport, ConversionResult, FormatPreference
from kindle_formatter.pipeline import NewsletterConverter


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Format email newsletters and PDFs as Kindle ebooks"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "classify", "convert"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="EML or PDF files to classify or convert.",
    )
    parser.add_argument(
        "--format",
        dest="format_preference",
        choices=[preference.value for preference in FormatPreference],
        default=None,
        help="Output format; auto tries AZW3 and falls back to EPUB.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output book path (EML, combined PDFs) or directory (PDF).",
    )
    parser.add_argument(
        "--template",
        default=None,
        help="Force a publisher template instead of the detected one.",
    )
    parser.add_argument(
        "--combine",
        action="store_true",
        help="Combine several PDFs into one book with a table of contents.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command
    if command == "info":
        _print_info(settings)
        return 0
    if not args.files:
        print(f"No files given for {command}.")
        return 1
    converter = NewsletterConverter(settings)
    if command == "classify":
        return _run_classify(converter, args.files)
    return asyncio.run(
        _run_convert(
            converter,
            args.files,
            output=args.output,
            template=args.template,
            format_preference=args.format_preference,
            combine=args.combine,
        )
    )


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    exit_code = execute(args, settings)
    if exit_code:
        raise SystemExit(exit_code)


def _print_info(settings: AppSettings) -> None:
    conversion = settings.conversion
    print("Kindle newsletter formatter is ready.")
    print(f"Format preference: {conversion.format_preference.value}")
    print(f"Output directory: {conversion.output_dir}")
    images = settings.images
    print(f"Remote images: {'on' if images.fetch_remote else 'off'} ({images.fetch_mode})")
    if CalibreTranscoder(conversion).is_available():
        location = conversion.calibre_path or find_calibre_path(conversion.ebook_convert)
        print(f"Calibre: available ({location or conversion.ebook_convert})")
    else:
        print("Calibre: not found, books will be written as EPUB")


def _run_classify(converter: NewsletterConverter, files: Sequence[Path]) -> int:
    failures = 0
    for path in files:
        try:
            result = converter.classify(path)
        except ConverterError as exc:
            print(f"{path}: error: {exc}")
            failures += 1
            continue
        print(f"{path}: {result.type} ({result.display_name}, confidence {result.confidence})")
    return 1 if failures == len(files) else 0


async def _run_convert(
    converter: NewsletterConverter,
    files: Sequence[Path],
    *,
    output: Path | None,
    template: str | None,
    format_preference: str | None,
    combine: bool = False,
) -> int:
    emls = [path for path in files if path.suffix.lower() != ".pdf"]
    pdfs = [path for path in files if path.suffix.lower() == ".pdf"]
    converted = 0
    failed = 0

    if len(emls) == 1:
        try:
            result = await converter.convert_eml(
                emls[0],
                output,
                template_override=template,
                format_preference=format_preference,
            )
        except ConverterError as exc:
            print(f"Failed: {emls[0]}: {exc}")
            failed += 1
        else:
            _print_result(result)
            converted += 1
    elif emls:
        report = await converter.convert_many(
            emls, output, template_override=template, format_preference=format_preference
        )
        _print_report(report)
        converted += report.succeeded
        failed += report.failed

    if len(pdfs) > 1 and combine:
        report = converter.combine_pdfs(pdfs, output, format_preference=format_preference)
        _print_report(report)
        converted += report.succeeded
        failed += report.failed
    elif pdfs:
        pdf_dir = output if output is not None and not output.suffix else None
        report = converter.convert_pdfs(pdfs, pdf_dir, format_preference=format_preference)
        _print_report(report)
        converted += report.succeeded
        failed += report.failed

    await converter.drain()
    print(f"Converted {converted} file(s), {failed} failed.")
    return 0 if converted else 1


def _print_result(result: ConversionResult) -> None:
    note = " (AZW3 unavailable, EPUB produced)" if result.fell_back else ""
    kind = f" [{result.classification.type}]" if result.classification else ""
    print(f"{result.source}{kind} -> {result.output_path}{note}")


def _print_report(report: BatchReport) -> None:
    for result in report.results:
        _print_result(result)
    for source, reason in report.failures.items():
        print(f"Failed: {source}: {reason}")


if __name__ == "__main__":
    main()
