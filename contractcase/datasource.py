"""
Tabular Data Sources

Cases read their expected values from spreadsheet rows. Each row becomes an
ExpectedParameters mapping of column name to cell text.

Reserved columns:
    case  - row label used in logs and reports (defaults to "row-<n>")
    run   - rows whose value is n/no/false/0/off are skipped

Excel sources are read through openpyxl, so only .xlsx workbooks are
supported. Convert legacy .xls files before use.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import pandas as pd

from .constants import CASE_COLUMN, DEFAULT_SHEET_NAME, RUN_COLUMN, SKIP_VALUES
from .exceptions import DataSourceError, MissingParameterError
from .logger import get_logger

logger = get_logger(__name__)


class DataSourceType(Enum):
    EXCEL = "excel"
    CSV = "csv"


@dataclass(frozen=True)
class DataSource:
    """Where a case's parameter rows come from."""
    type: DataSourceType
    file: str
    sheet_name: str = DEFAULT_SHEET_NAME
    author: str = ""
    show_name: str = ""

    def resolve(self, base_dir: Optional[Union[str, Path]] = None) -> Path:
        path = Path(self.file)
        if not path.is_absolute() and base_dir is not None:
            path = Path(base_dir) / path
        return path


class ExpectedParameters(Mapping):
    """Immutable str -> str mapping for one data row."""

    def __init__(self, values: Dict[str, str], label: str = ""):
        self._values = dict(values)
        self.label = label

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ExpectedParameters({self.label!r}, {self._values!r})"

    def require(self, key: str) -> str:
        """
        Return a non-empty parameter value.

        Raises:
            MissingParameterError: key absent or blank
        """
        value = self._values.get(key, "")
        if not value.strip():
            raise MissingParameterError(key, self.label)
        return value.strip()


def _read_frame(source: DataSource, path: Path) -> pd.DataFrame:
    if not path.exists():
        raise DataSourceError(f"Data file not found: {path}")
    if source.type is DataSourceType.EXCEL and path.suffix.lower() == ".xls":
        raise DataSourceError(f"Legacy .xls workbooks are not supported, save {path.name} as .xlsx")
    try:
        if source.type is DataSourceType.CSV:
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        return pd.read_excel(path, sheet_name=source.sheet_name, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataSourceError(f"Cannot read {path}: {e}") from e
    except ValueError as e:
        # pandas reports an unknown sheet name as ValueError
        raise DataSourceError(f"Cannot read sheet '{source.sheet_name}' of {path}: {e}") from e


def _should_run(value: str) -> bool:
    return value.strip().casefold() not in SKIP_VALUES


def load_rows(source: DataSource, base_dir: Optional[Union[str, Path]] = None) -> List[ExpectedParameters]:
    """
    Load every runnable row of *source* as ExpectedParameters.

    Raises:
        DataSourceError: the file is missing, unreadable or has no header
    """
    path = source.resolve(base_dir)
    frame = _read_frame(source, path)
    columns = [str(column).strip() for column in frame.columns]
    if not columns:
        raise DataSourceError(f"{path} has no header row")
    frame.columns = columns

    rows = []
    for position, record in enumerate(frame.to_dict(orient="records"), start=1):
        values = {key: str(value).strip() for key, value in record.items()}
        if RUN_COLUMN in values and not _should_run(values.pop(RUN_COLUMN)):
            logger.info("Skipping row %d of %s", position, path.name)
            continue
        label = values.pop(CASE_COLUMN, "") or f"row-{position}"
        rows.append(ExpectedParameters(values, label=label))

    logger.debug("Loaded %d row(s) from %s", len(rows), path)
    return rows
