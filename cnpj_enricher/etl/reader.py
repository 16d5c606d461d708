"""Decoding of semicolon-delimited registry exports."""

import csv
import io
import logging
from typing import List

logger = logging.getLogger(__name__)

DELIMITER = ";"


class CSVDecodeError(ValueError):
    """Raised when the uploaded file cannot be decoded into rows."""


def read_rows(data: bytes, encoding: str = "utf-8") -> List[List[str]]:
    """Decode ``data`` into rows of string fields.

    Quote characters inside fields are tolerated: the csv module runs in
    non-strict mode, so stray quotes are kept as literal text instead of
    failing the whole file.
    """
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise CSVDecodeError(f"could not decode input as {encoding}: {exc}") from exc

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=DELIMITER, strict=False)
    try:
        rows = [row for row in reader if row]
    except csv.Error as exc:
        raise CSVDecodeError(f"line {reader.line_num}: {exc}") from exc

    logger.debug("Decoded %d rows", len(rows))
    return rows
