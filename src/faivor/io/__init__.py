"""CSV reading and dataset folder loading."""

from faivor.io.csv_reader import (
    NaiveRowParser,
    QuoteAwareRowParser,
    RowParser,
    decode_bytes,
    detect_delimiter,
    read_dataset,
    read_header,
    split_lines,
)
from faivor.io.folder import DatasetFolder, load_dataset_folder, validate_folder_structure

__all__ = [
    "RowParser",
    "QuoteAwareRowParser",
    "NaiveRowParser",
    "decode_bytes",
    "detect_delimiter",
    "read_dataset",
    "read_header",
    "split_lines",
    "DatasetFolder",
    "load_dataset_folder",
    "validate_folder_structure",
]
