"""Record pipeline: enrich registry rows and keep companies above the capital threshold."""

import argparse
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from cnpj_enricher.core.config import ConfigError, get_settings
from cnpj_enricher.core.dedup import DedupCache, init_cache
from cnpj_enricher.core.output import FileAccessError, OutputSink, OutputWriteError
from cnpj_enricher.core.validator import extract_cnpj, validate_cnpj
from cnpj_enricher.etl.reader import CSVDecodeError, read_rows
from cnpj_enricher.etl.transform import MIN_ROW_FIELDS, exceeds_threshold, to_output_record
from cnpj_enricher.models import RunSummary
from cnpj_enricher.vendors import minhareceita

logger = logging.getLogger(__name__)


def process_records(
    records: Iterable[Sequence[str]],
    sink: OutputSink,
    *,
    cache: Optional[DedupCache] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    row_delay: Optional[float] = None,
) -> RunSummary:
    """Run every row through validation, dedup, lookup, filter and output.

    Rows are handled one at a time in input order. A lookup or write failure
    only skips the current row. The run pauses ``row_delay`` seconds after
    every row, skipped or not.
    """
    settings = get_settings()
    cache = cache if cache is not None else init_cache()
    base_url = base_url or settings.enrichment_api_url
    timeout = timeout if timeout is not None else settings.lookup_timeout
    row_delay = row_delay if row_delay is not None else settings.row_delay

    summary = RunSummary()
    for row in records:
        summary.total += 1
        _process_row(row, sink, cache, base_url, timeout, summary)
        if row_delay:
            time.sleep(row_delay)

    logger.info(
        "Completed run: total=%d written=%d short=%d invalid=%d cached=%d lookup_failed=%d below_threshold=%d write_failed=%d",
        summary.total,
        summary.written,
        summary.skipped_short_row,
        summary.skipped_invalid,
        summary.skipped_cached,
        summary.lookup_failed,
        summary.below_threshold,
        summary.write_failed,
    )
    return summary


def _process_row(
    row: Sequence[str],
    sink: OutputSink,
    cache: DedupCache,
    base_url: str,
    timeout: float,
    summary: RunSummary,
) -> None:
    if len(row) < MIN_ROW_FIELDS:
        logger.debug("Skipping row with %d fields", len(row))
        summary.skipped_short_row += 1
        return

    cnpj = extract_cnpj(row)
    if not validate_cnpj(cnpj):
        logger.debug("Skipping invalid CNPJ %r", cnpj)
        summary.skipped_invalid += 1
        return

    if cache.should_skip(cnpj):
        logger.debug("Skipping %s: looked up within the cooldown window", cnpj)
        summary.skipped_cached += 1
        return

    try:
        company = minhareceita.lookup_company(cnpj, base_url=base_url, timeout=timeout)
    except minhareceita.CompanyLookupError as exc:
        logger.warning("Failed to look up CNPJ %s: %s", cnpj, exc)
        summary.lookup_failed += 1
        return

    cache.mark_processed(cnpj)

    if not exceeds_threshold(company):
        logger.debug("Skipping %s due to capital %s", cnpj, company.capital_social)
        summary.below_threshold += 1
        return

    try:
        sink.append(to_output_record(cnpj, company, row))
    except OutputWriteError as exc:
        logger.error("Failed to write %s: %s", cnpj, exc)
        summary.write_failed += 1
        return

    summary.written += 1


def run_file(
    input_path: Path,
    output_dir: Optional[Path] = None,
    row_delay: Optional[float] = None,
) -> Tuple[Path, RunSummary]:
    """Process a local registry export and return the output path and summary."""
    settings = get_settings()
    started_at = datetime.now()
    try:
        data = Path(input_path).read_bytes()
    except OSError as exc:
        raise FileAccessError(f"could not read input file {input_path}: {exc}") from exc
    records = read_rows(data, encoding=settings.input_encoding)

    with OutputSink.create(output_dir or settings.output_dir, started_at) as sink:
        logger.info("Processing %s (%d rows) into %s", input_path, len(records), sink.path)
        sink.write_header()
        summary = process_records(records, sink, row_delay=row_delay)
    return sink.path, summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Filter a registry export by declared capital")
    parser.add_argument("input", type=Path, help="Semicolon-delimited registry CSV")
    parser.add_argument("--output-dir", dest="output_dir", type=Path, help="Directory for the result CSV")
    parser.add_argument(
        "--row-delay",
        dest="row_delay",
        type=float,
        help="Seconds to wait after each row (defaults to ROW_DELAY_SECONDS)",
    )
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if args.row_delay is not None and args.row_delay < 0:
        parser.error("--row-delay must not be negative")
    try:
        settings = get_settings()
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")

    try:
        output_path, summary = run_file(args.input, output_dir=args.output_dir, row_delay=args.row_delay)
    except (FileAccessError, CSVDecodeError, OutputWriteError) as exc:
        logger.error("Processing failed: %s", exc)
        raise SystemExit(1) from exc

    logger.info("Results saved in %s (%d of %d rows written)", output_path, summary.written, summary.total)


if __name__ == "__main__":
    main()
