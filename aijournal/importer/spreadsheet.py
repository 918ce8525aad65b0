"""Reading spreadsheet files into raw row mappings."""

import logging
from pathlib import Path
from typing import Any

from aijournal.errors import EmptyImportError, WorkbookReadError


logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".xlsx", ".xlsm", ".xls", ".csv")


def read_rows(path: Path) -> list[dict[str, Any]]:
    """Read the first sheet of a workbook (or a CSV file) into raw rows.

    Each row becomes a mapping from the header cell text to the cell
    value. Empty cells become None; fully empty rows are dropped.

    Args:
        path: Path to an .xlsx/.xls/.csv file.

    Returns:
        Rows in sheet order.

    Raises:
        WorkbookReadError: If the file cannot be opened or parsed.
        EmptyImportError: If the sheet has no data rows.
    """
    import pandas as pd

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise WorkbookReadError(
            f"Unsupported file type '{suffix or path.name}'. "
            f"Use one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )

    try:
        if suffix == ".csv":
            frame = pd.read_csv(path)
        else:
            frame = pd.read_excel(path, sheet_name=0)
    except FileNotFoundError as e:
        raise WorkbookReadError(f"File not found: {path}") from e
    except pd.errors.EmptyDataError as e:
        raise EmptyImportError() from e
    except Exception as e:
        logger.exception("Failed to parse %s", path)
        raise WorkbookReadError(f"Error processing file {path.name}: {e}") from e

    return frame_to_rows(frame)


def frame_to_rows(frame: Any) -> list[dict[str, Any]]:
    """Convert a DataFrame into raw rows with None for empty cells.

    Raises:
        EmptyImportError: If no non-empty rows remain.
    """
    frame = frame.dropna(how="all")
    if frame.empty:
        raise EmptyImportError()

    frame = frame.astype(object).where(frame.notna(), None)
    frame.columns = [str(column).strip() for column in frame.columns]
    rows = frame.to_dict(orient="records")
    logger.info("Read %d rows with columns %s", len(rows), list(frame.columns))
    return rows
