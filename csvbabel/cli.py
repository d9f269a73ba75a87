"""Command line interface for the csvbabel translator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib
import sys
from dataclasses import replace
from typing import Iterable, Optional

from .configuration import build_orchestrator_config, get_settings
from .errors import (
    CsvBabelError,
    TranslationProviderConfigurationError,
)
from .languages import validate_language
from .policy import RetryPolicy
from .providers import build_provider
from .table import parse_csv, serialize_csv
from .translator import TableTranslator, TranslationSummary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvbabel",
        description=(
            "Fill in missing translations in a CSV file, or translate the whole "
            "file into one language."
        ),
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        help="Path to the .csv file to translate.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help=(
            "Translate every cell into this language. Without it, empty cells "
            "are filled using the column names as language codes."
        ),
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to prefixing the input name with 'translated_'.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translation provider identifier (default: from configuration).",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Provider-specific model identifier.",
    )
    parser.add_argument(
        "-b",
        "--batch-size",
        type=int,
        help="Maximum texts per provider call (default: 10).",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        help="Maximum provider calls in flight (default: 100).",
    )
    parser.add_argument(
        "-r",
        "--retries",
        type=int,
        help="Retries for a failed batch (default: 2).",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete provider requests and responses for troubleshooting.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP translation service instead of translating a file.",
    )
    parser.add_argument("--host", help="Host to bind when serving.")
    parser.add_argument("--port", type=int, help="Port to bind when serving.")
    return parser


def derive_output_path(input_path: pathlib.Path) -> pathlib.Path:
    return input_path.with_name(f"translated_{input_path.name}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.is_file():
        raise CsvBabelError(f"Input file not found: {input_path}")
    if input_path.resolve() == output_path.resolve():
        raise CsvBabelError(
            "The output path matches the input file. Refusing to overwrite the source file."
        )
    if output_path.exists() and not force_overwrite:
        raise CsvBabelError(
            "The output file already exists. Rename it or use --force."
        )


def configure_logging(verbose: bool, provider_debug: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if provider_debug:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def translate_file(
    *,
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    target_language: str | None,
    translator: TableTranslator,
) -> TranslationSummary:
    table = parse_csv(input_path.read_text(encoding="utf-8-sig"))
    try:
        outcome = await translator.translate(table, target_language)
    finally:
        await translator.provider.aclose()
    output_path.write_text(serialize_csv(outcome.table), encoding="utf-8")
    return outcome.summary


def execute_translation(args: argparse.Namespace) -> tuple[int, TranslationSummary | None, str | None]:
    """Run a translation and return the exit code, summary, and message."""

    input_path = pathlib.Path(args.input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(args.output).expanduser().resolve()
        if args.output
        else derive_output_path(input_path)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=args.force)
        target_language = (
            validate_language(args.target_language) if args.target_language else None
        )
        settings = get_settings()
        config = build_orchestrator_config(settings)
        config = replace(
            config,
            max_batch_size=(
                args.batch_size
                if args.batch_size is not None
                else config.max_batch_size
            ),
            max_concurrency=(
                args.concurrency
                if args.concurrency is not None
                else config.max_concurrency
            ),
            provider_model=args.model or config.provider_model,
            retry=(
                RetryPolicy(max_retries=args.retries)
                if args.retries is not None
                else config.retry
            ),
        )
        provider = build_provider(
            args.provider or settings.LLM_PROVIDER,
            settings,
            debug=args.debug_provider or settings.CSVBABEL_PROVIDER_DEBUG,
        )
    except (CsvBabelError, ValueError) as exc:
        return 1, None, str(exc)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    translator = TableTranslator(provider, config)
    try:
        summary = asyncio.run(
            translate_file(
                input_path=input_path,
                output_path=output_path,
                target_language=target_language,
                translator=translator,
            )
        )
    except UnicodeDecodeError:
        return 1, None, "The input file is not valid UTF-8 text."
    except CsvBabelError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."

    return 0, summary, None


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    print("\nTranslation complete.")
    print(f"  Mode:            {summary.mode.value}")
    print(f"  Rows:            {summary.total_rows}")
    print(
        f"  Requests:        {summary.total_requests} "
        f"in {summary.total_batches} batches"
    )
    if summary.language_pairs:
        print(f"  Language pairs:  {', '.join(summary.language_pairs)}")
    print(f"  Cells written:   {summary.translated_cells}")
    if summary.missing_results:
        print(f"  Missing results: {summary.missing_results}")
    print(
        f"  Provider:        {summary.provider_name}"
        + (f" ({summary.model})" if summary.model else "")
    )
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .api import create_app

    try:
        settings = get_settings()
    except TranslationProviderConfigurationError as exc:
        print(exc)
        return 1
    uvicorn.run(
        create_app(),
        host=args.host or settings.CSVBABEL_HOST,
        port=args.port or settings.CSVBABEL_PORT,
    )
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose, args.debug_provider)

    if args.serve:
        return serve(args)

    if args.input_file is None:
        parser.error("the following arguments are required: input_file")

    exit_code, summary, message = execute_translation(args)
    if message:
        print(message)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
