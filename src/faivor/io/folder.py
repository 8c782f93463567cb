"""Dataset folder loading.

A dataset folder holds the three files a validation run needs:

    metadata.json          FAIRmodels model metadata (optional if a schema is supplied)
    data.csv               the dataset to validate
    column_metadata.json   optional per-column metadata for execution
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

METADATA_FILENAME = "metadata.json"
DATA_FILENAME = "data.csv"
COLUMN_METADATA_FILENAME = "column_metadata.json"


class DatasetFolder(BaseModel):
    """Raw contents of a dataset folder, held in memory for one run."""

    name: str = Field(..., description="Folder name")
    data: bytes = Field(..., description="Raw dataset bytes")
    metadata_text: str | None = None
    column_metadata_text: str | None = None
    data_filename: str = DATA_FILENAME

    @property
    def total_size(self) -> int:
        size = len(self.data)
        for text in (self.metadata_text, self.column_metadata_text):
            if text is not None:
                size += len(text.encode("utf-8"))
        return size


def validate_folder_structure(
    metadata_file: Path | None,
    data_file: Path | None,
    column_metadata_file: Path | None = None,
    *,
    has_model_metadata: bool = False,
) -> list[str]:
    """Check that the folder provides the files a validation run needs.

    Args:
        metadata_file: Path to the model metadata file, if any.
        data_file: Path to the dataset file, if any.
        column_metadata_file: Path to the column metadata file, if any.
        has_model_metadata: True when model metadata is available from
            elsewhere, which makes metadata.json optional.

    Returns:
        List of problems; empty when the structure is valid.
    """
    errors: list[str] = []

    if metadata_file is None and not has_model_metadata:
        errors.append("metadata.json file is required (or model must have metadata configured)")
    elif metadata_file is not None and metadata_file.suffix.lower() != ".json":
        errors.append("Metadata file must be a JSON file")

    if data_file is None:
        errors.append("data.csv file is required")
    elif data_file.suffix.lower() != ".csv":
        errors.append("Data file must be a CSV file")

    if column_metadata_file is not None and column_metadata_file.suffix.lower() != ".json":
        errors.append("Column metadata file must be a JSON file")

    return errors


def _find_data_file(folder: Path) -> Path | None:
    preferred = folder / DATA_FILENAME
    if preferred.is_file():
        return preferred
    csv_files = sorted(folder.glob("*.csv"))
    return csv_files[0] if csv_files else None


def load_dataset_folder(folder: str | Path, *, has_model_metadata: bool = False) -> DatasetFolder:
    """Read a dataset folder into memory.

    Uses ``data.csv`` when present, otherwise the first ``*.csv`` file.

    Raises:
        FileNotFoundError: If the folder does not exist.
        ValueError: If the folder structure is invalid.
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Dataset folder not found: {folder}")

    metadata_path = folder / METADATA_FILENAME
    column_metadata_path = folder / COLUMN_METADATA_FILENAME
    data_path = _find_data_file(folder)

    errors = validate_folder_structure(
        metadata_path if metadata_path.is_file() else None,
        data_path,
        column_metadata_path if column_metadata_path.is_file() else None,
        has_model_metadata=has_model_metadata,
    )
    if errors:
        raise ValueError(f"Invalid folder structure: {', '.join(errors)}")
    assert data_path is not None

    logger.info("Loading dataset folder: {} (data file {})", folder.name, data_path.name)
    return DatasetFolder(
        name=folder.name,
        data=data_path.read_bytes(),
        metadata_text=metadata_path.read_text(encoding="utf-8") if metadata_path.is_file() else None,
        column_metadata_text=(
            column_metadata_path.read_text(encoding="utf-8")
            if column_metadata_path.is_file()
            else None
        ),
        data_filename=data_path.name,
    )
