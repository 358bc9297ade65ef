"""Pipeline CLI Entry Point

Command-line interface for the song embedding pipeline: configures
logging, parses arguments and runs the CSV -> songs -> embeddings flow.

Usage:
    lyricmind-pipeline --input data/songs.csv --output-dir output
    python -m lyricmind_pipeline.run_pipeline --input data/songs.csv --dry-run
"""

import argparse
import logging
import time
from pathlib import Path

from lyricmind_pipeline.pipeline import run_pipeline


def configure_logging(log_dir: Path = Path("logs")) -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level
      - File handler at DEBUG level (logs/pipeline.log)
      - Reduced verbosity for httpx and openai loggers
    """
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "pipeline.log"

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # avoid duplicate handlers when main() runs more than once
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def main(argv=None) -> int:
    """
    CLI entrypoint for the song embedding pipeline.

    Returns 0 on success, 1 on any failure.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(
        description="LyricMind song embedding pipeline"
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=Path("data/songs.csv"),
        help="Path to the song CSV file (needs Artist,Title,Album,Year,Date,Lyric).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory where songs, points and run metadata are written.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Normalize and embed in memory only; write no output files.",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Overwrite output files instead of creating timestamped versions",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=100,
        help="Number of documents per embedding batch (default: 100)",
    )

    args = parser.parse_args(argv)

    logger.info("=== Starting LyricMind song embedding pipeline ===")
    logger.info("Input: %s", args.input)
    logger.info("Output directory: %s", args.output_dir)
    logger.info("Dry run: %s", args.dry_run)
    logger.info("Keep history: %s", not args.no_history)

    try:
        start_time = time.time()

        total_rows, embedded_count, output_paths = run_pipeline(
            input_path=args.input,
            output_dir=args.output_dir,
            dry_run=args.dry_run,
            keep_history=not args.no_history,
            batch_size=args.batch_size,
        )

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        logger.info("Summary:")
        logger.info("  Input:     %s", args.input)
        logger.info("  Embedded:  %d/%d rows", embedded_count, total_rows)
        logger.info("Output files:")
        for name, path in output_paths.items():
            logger.info("  %-10s %s", f"{name}:", path)
        logger.info("=" * 70)

    except Exception as e:
        logger.exception("Pipeline failed: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
