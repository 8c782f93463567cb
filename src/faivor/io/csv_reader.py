"""CSV text reading with a single row-parser abstraction.

Two row parsers share the ``parse_row`` contract:

- QuoteAwareRowParser: a double quote toggles "inside quotes" mode, so
  delimiters inside quotes are literal. One surrounding quote pair is
  stripped from each field. Escaped quotes (``""``) are NOT supported.
- NaiveRowParser: plain split on the delimiter. Used when synthesizing mock
  columns, where rows are re-serialized without interpretation.

Both trim whitespace around fields. Rows whose cell count differs from the
header are dropped by read_dataset, never padded or truncated.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from faivor.errors import EmptyDatasetError, NoValidRowsError
from faivor.models.dataset import Dataset

# Candidate delimiters for auto-detection, in preference order.
CANDIDATE_DELIMITERS: tuple[str, ...] = (",", ";", "\t", "|")


class RowParser(Protocol):
    def parse_row(self, line: str) -> list[str]: ...


class QuoteAwareRowParser:
    """Minimal quote-aware field splitter."""

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    def parse_row(self, line: str) -> list[str]:
        fields: list[str] = []
        current: list[str] = []
        in_quotes = False

        for char in line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == self.delimiter and not in_quotes:
                fields.append("".join(current).strip())
                current = []
            else:
                current.append(char)

        fields.append("".join(current).strip())
        return [_strip_surrounding_quotes(f) for f in fields]


class NaiveRowParser:
    """Split on the delimiter with no quote handling."""

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    def parse_row(self, line: str) -> list[str]:
        return [cell.strip() for cell in line.split(self.delimiter)]


def _strip_surrounding_quotes(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def decode_bytes(data: bytes | str) -> str:
    """Decode uploaded bytes as UTF-8, dropping a leading BOM."""
    if isinstance(data, str):
        return data.removeprefix("\ufeff")
    return data.decode("utf-8-sig")


def split_lines(text: str) -> list[str]:
    """Split text into lines, dropping blank lines and trailing carriage returns."""
    return [line.rstrip("\r") for line in text.split("\n") if line.strip()]


def detect_delimiter(header_line: str) -> str:
    """Return the candidate delimiter that splits the header into the most fields.

    Ties keep the earlier candidate, so a single-column header stays comma.
    """
    best = CANDIDATE_DELIMITERS[0]
    best_count = 0
    for delimiter in CANDIDATE_DELIMITERS:
        n_fields = len(QuoteAwareRowParser(delimiter).parse_row(header_line))
        if n_fields > best_count:
            best, best_count = delimiter, n_fields
    return best


def read_dataset(text: str, parser: RowParser | None = None) -> Dataset:
    """Parse CSV text into a Dataset.

    Args:
        text: Raw CSV text.
        parser: Row parser to use. Defaults to a comma QuoteAwareRowParser.

    Returns:
        Dataset with the header as columns and only the rows whose cell
        count equals the header's.

    Raises:
        EmptyDatasetError: If the text has no non-blank lines.
        NoValidRowsError: If no data row has the header's width.
    """
    lines = split_lines(text)
    if not lines:
        raise EmptyDatasetError("CSV file is empty")

    parser = parser or QuoteAwareRowParser()
    columns = parser.parse_row(lines[0])
    width = len(columns)

    parsed = [parser.parse_row(line) for line in lines[1:]]
    rows = [row for row in parsed if len(row) == width]

    dropped = len(parsed) - len(rows)
    if dropped:
        logger.warning(
            "Dropped {} of {} rows whose cell count differs from the header ({})",
            dropped,
            len(parsed),
            width,
        )

    if not rows:
        if not parsed:
            raise NoValidRowsError("CSV file only contains headers, no data rows found")
        raise NoValidRowsError(
            f"No valid data rows found: all {len(parsed)} rows disagree with the "
            f"header's {width} columns"
        )

    logger.debug("Read {} rows x {} columns", len(rows), width)
    return Dataset(columns=columns, rows=rows)


def read_header(text: str) -> list[str]:
    """Parse only the header line, detecting its delimiter.

    Raises:
        EmptyDatasetError: If the text has no non-blank lines.
    """
    lines = split_lines(text)
    if not lines:
        raise EmptyDatasetError("CSV file is empty")
    return QuoteAwareRowParser(detect_delimiter(lines[0])).parse_row(lines[0])
