"""CLI for the document-to-chunk pipeline.

Commands:
    kb-ingest parse   Show pages, headings and sections detected in text files
    kb-ingest chunk   Chunk text files into token-bounded JSONL segments

Pipeline:
    extracted text → parse → chunk → JSONL (hash, sequence, text, metadata)

Examples:
    # Chunk every .txt file under extracted/ into chunks/
    kb-ingest chunk -i extracted/ -o chunks/

    # Chunk one file, ignoring section boundaries
    kb-ingest chunk -i book.txt -o chunks/ --no-sections

    # Inspect detected structure of a 12-page document
    kb-ingest parse -i book.txt --pages 12
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
import traceback
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

# =============================================================================
# LOGGING SETUP
# =============================================================================

# Module-level logger
logger = logging.getLogger("kb_ingest")


def _setup_logging(log_dir: Path | None = None, verbose: bool = False) -> Path:
    """Configure logging with file and console handlers.

    Args:
        log_dir: Directory for log files (default: ./logs/)
        verbose: If True, set console to DEBUG level

    Returns:
        Path to the log file
    """
    if log_dir is None:
        log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    # Create timestamped log file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"kb_ingest_{timestamp}.log"

    logger.setLevel(logging.DEBUG)

    # File handler - captures everything with full detail
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)

    # Console handler - less verbose unless --verbose flag
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    # Clear existing handlers and add new ones
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info(f"Logging initialized - log file: {log_file}")
    return log_file


def _log_exception(msg: str, exc: Exception) -> None:
    """Log an exception with full traceback to file.

    Args:
        msg: Context message describing what failed
        exc: The exception that was raised
    """
    logger.error(f"{msg}: {type(exc).__name__}: {exc}")
    logger.debug(f"Traceback:\n{traceback.format_exc()}")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=Path("extracted"),
        help="Input .txt file or directory of .txt files (default: extracted/)",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=None,
        metavar="N",
        help="Page count of each document (default: form feeds + 1)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        metavar="N",
        help="Process only the first N pages of each document",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for log files (default: logs/)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output on the console",
    )


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="kb-ingest",
        description="Turn extracted document text into retrieval-ready chunks",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # =========================================================================
    # PARSE SUBCOMMAND
    # =========================================================================
    parse_parser = subparsers.add_parser(
        "parse",
        help="Show detected pages, headings and sections",
        description=(
            "Split extracted text into pages, detect headings and build sections. "
            "Prints one JSON document per input file."
        ),
    )
    _add_common_arguments(parse_parser)

    # =========================================================================
    # CHUNK SUBCOMMAND
    # =========================================================================
    chunk_parser = subparsers.add_parser(
        "chunk",
        help="Chunk extracted text into token-bounded segments",
        description=(
            "Parse extracted text files and chunk them with tiktoken-based token "
            "counting into JSONL files keyed by content hash and sequence."
        ),
    )
    _add_common_arguments(chunk_parser)
    chunk_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("chunks"),
        help="Output directory for .jsonl files (default: chunks/)",
    )
    chunk_parser.add_argument(
        "--min-tokens",
        type=int,
        default=None,
        help="Minimum token count per chunk (default: from pyproject, 300)",
    )
    chunk_parser.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        help="Maximum token count per chunk (default: from pyproject, 800)",
    )
    chunk_parser.add_argument(
        "--target-tokens",
        type=int,
        default=None,
        help="Target token count for word-level splits (default: from pyproject, 500)",
    )
    chunk_parser.add_argument(
        "--overlap-tokens",
        type=int,
        default=None,
        help="Approximate overlap between word-level splits (default: from pyproject, 50)",
    )
    chunk_parser.add_argument(
        "--no-sections",
        action="store_true",
        help="Ignore section boundaries and chunk across pages",
    )
    chunk_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable per-file progress output",
    )

    return parser


def _discover_inputs(input_path: Path) -> list[Path]:
    """Return the .txt files to process, sorted for stable output."""
    if input_path.is_file():
        return [input_path]
    return sorted(input_path.rglob("*.txt"))


def _page_count(text: str, requested: int | None) -> int:
    if requested is not None and requested > 0:
        return requested
    return text.count("\f") + 1


def _run_parse_process(args: argparse.Namespace) -> int:
    """Print the detected structure of each input file as JSON.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 if any file was parsed, 1 otherwise)
    """
    # Import here to speed up --help
    from kb_ingest.config import load_config
    from kb_ingest.ingest.parsers import parse_document

    input_path: Path = args.input
    if not input_path.exists():
        print(f"Error: Input path does not exist: {input_path}")
        return 1

    _setup_logging(args.log_dir, args.verbose)
    options = load_config().parser_options(max_pages=args.max_pages)

    parsed_count = 0
    failed_count = 0
    for input_file in _discover_inputs(input_path):
        try:
            text = input_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _log_exception(f"Failed to read {input_file}", exc)
            failed_count += 1
            continue
        document = parse_document(text, _page_count(text, args.pages), options)
        summary = {
            "file": str(input_file),
            "pages": len(document.pages),
            "words": document.estimated_word_count,
            "headings": [asdict(h) for h in document.headings],
            "sections": [
                {
                    "heading": s.heading,
                    "level": s.level,
                    "page_start": s.page_start,
                    "page_end": s.page_end,
                    "characters": len(s.text),
                }
                for s in document.sections
            ],
        }
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        parsed_count += 1

    if failed_count:
        logger.warning(f"Failed to parse {failed_count} files")
    return 0 if parsed_count else 1


def _run_chunk_process(args: argparse.Namespace) -> int:
    """Run chunking process on extracted text files.

    Each file is parsed, chunked and written to a .jsonl file that mirrors
    its path relative to the input directory. A failed document is logged
    and counted; it does not stop the batch.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, 1 for error, 130 for interrupt)
    """
    # Import here to speed up --help
    from kb_ingest.config import load_config
    from kb_ingest.ingest.chunker import Chunker, InvalidConfigError, write_chunks_jsonl
    from kb_ingest.ingest.parsers import parse_document

    input_path: Path = args.input
    output_dir: Path = args.output
    show_progress: bool = not args.no_progress

    # Validate input path
    if not input_path.exists():
        print(f"Error: Input path does not exist: {input_path}")
        return 1

    log_file = _setup_logging(args.log_dir, args.verbose)
    project_config = load_config()

    try:
        config = project_config.chunking_config(
            min_tokens=args.min_tokens,
            max_tokens=args.max_tokens,
            target_tokens=args.target_tokens,
            overlap_tokens=args.overlap_tokens,
            respect_section_boundaries=False if args.no_sections else None,
        )
    except InvalidConfigError as exc:
        print(f"Error: {exc}")
        return 1

    options = project_config.parser_options(max_pages=args.max_pages)
    chunker = Chunker(config)

    # Print header
    print("Chunk Processing (tiktoken)")
    print("=" * 40)
    print(f"Input:     {input_path}")
    print(f"Output:    {output_dir}")
    print(f"Min:       {config.min_tokens} tokens")
    print(f"Target:    {config.target_tokens} tokens")
    print(f"Max:       {config.max_tokens} tokens")
    print(f"Overlap:   {config.overlap_tokens} tokens")
    print(f"Sections:  {'respected' if config.respect_section_boundaries else 'ignored'}")

    input_files = _discover_inputs(input_path)
    total_files = len(input_files)
    print(f"Files:     {total_files}")
    print()

    if total_files == 0:
        print("No .txt files found in input path")
        return 1

    processed_count = 0
    failed_count = 0
    total_chunks = 0
    total_tokens = 0
    start_time = time.perf_counter()

    try:
        for i, input_file in enumerate(input_files):
            if input_path.is_file():
                relative_path = Path(input_file.name)
            else:
                relative_path = input_file.relative_to(input_path)
            output_file = output_dir / relative_path.with_suffix(".jsonl")

            if show_progress:
                print(f"[{i + 1}/{total_files}] {relative_path}")

            try:
                text = input_file.read_text(encoding="utf-8")
                document = parse_document(text, _page_count(text, args.pages), options)
            except (OSError, UnicodeDecodeError) as exc:
                _log_exception(f"Failed to read {relative_path}", exc)
                failed_count += 1
                continue

            result = chunker.chunk_document(document)
            if not result.success:
                error = result.error
                code = error.code if error else "UNKNOWN_ERROR"
                message = error.message if error else ""
                logger.warning(f"Skipping {relative_path}: {code} {message}")
                if error and error.details:
                    logger.debug(error.details)
                failed_count += 1
                continue

            write_chunks_jsonl(result, output_file, document_id=str(relative_path.with_suffix("")))
            processed_count += 1
            total_chunks += result.stats.total_chunks
            total_tokens += result.stats.total_tokens
            logger.info(
                f"{relative_path}: {result.stats.total_chunks} chunks, "
                f"{result.stats.merge_count} merges, {result.stats.split_count} splits"
            )

        elapsed = time.perf_counter() - start_time
        print()
        print(f"Complete:  {processed_count} files processed in {elapsed:.1f}s")
        print(f"Chunks:    {total_chunks:,} total ({total_tokens:,} tokens)")
        if failed_count > 0:
            print(f"Failed:    {failed_count} files (see {log_file})")

        return 0 if processed_count > 0 else 1

    except KeyboardInterrupt:
        print(f"\n\nInterrupted after processing {processed_count} files")
        return 130  # Standard exit code for SIGINT


def main() -> None:
    """Run the chunking pipeline CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    if args.command == "chunk":
        exit_code = _run_chunk_process(args)
        sys.exit(exit_code)
    elif args.command == "parse":
        exit_code = _run_parse_process(args)
        sys.exit(exit_code)
    else:
        parser.print_help()
        sys.exit(0 if args.command is None else 1)


if __name__ == "__main__":
    main()
