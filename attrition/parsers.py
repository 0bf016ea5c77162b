"""CSV upload parsing and employee record normalization."""

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from attrition.models import EmployeeRecord


logger = logging.getLogger(__name__)

MAX_DATA_ROWS = 50

# (header label, cell text) per column, in file order
RawRow = List[Tuple[str, str]]

DEFAULTS = {
    'department': 'General',
    'age': 30,
    'years_at_company': 1,
    'job_satisfaction': 3,
    'monthly_income': 5000.0,
    'overtime': False,
    'work_life_balance': 3,
    'distance_from_home': 10.0,
    'num_companies_worked': 1,
    'job_role': 'Associate',
}

OVERTIME_TRUE_VALUES = {'yes', '1', 'true'}


class IntakeError(ValueError):
    """The uploaded file could not be read."""


class ParseError(ValueError):
    """The uploaded file was readable but held no data rows."""


@dataclass
class ParsedUpload:
    """Normalized records plus how much of the file was consumed."""
    records: List[EmployeeRecord] = field(default_factory=list)
    total_rows: int = 0
    processed_rows: int = 0

    @property
    def has_data(self) -> bool:
        return bool(self.records)

    @property
    def truncated(self) -> bool:
        return self.total_rows > self.processed_rows


def clean_cell(value: str) -> str:
    """Trim whitespace and surrounding quote characters."""
    return value.strip().strip('"\'').strip()


def normalize_header(label: str) -> str:
    return clean_cell(label).lower()


def match_column(label: str) -> Optional[str]:
    """
    Map a normalized header label to a canonical field name.
    
    The first matching alias rule wins, so a label maps to at most one field.
    
    Args:
        label: Lower-cased, quote-stripped header label
    
    Returns:
        Field name, or None for columns we do not use
    """
    if 'name' in label:
        return 'name'
    if 'department' in label or label == 'dept':
        return 'department'
    if 'age' in label:
        return 'age'
    if ('year' in label and 'company' in label) or label in ('yearsatcompany', 'tenure'):
        return 'years_at_company'
    if 'satisfaction' in label or label == 'jobsatisfaction':
        return 'job_satisfaction'
    if 'income' in label or label == 'monthlyincome':
        return 'monthly_income'
    if 'overtime' in label:
        return 'overtime'
    if 'worklife' in label or label == 'worklifebalance':
        return 'work_life_balance'
    if 'distance' in label or label == 'distancefromhome':
        return 'distance_from_home'
    if 'numcompanies' in label or label == 'numcompaniesworked':
        return 'num_companies_worked'
    if 'jobrole' in label or label == 'role':
        return 'job_role'
    return None


def parse_number(value: str) -> Optional[float]:
    """Parse a numeric cell; anything non-finite or malformed is None."""
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int(value: str) -> Optional[int]:
    """Parse an integer cell, truncating decimals toward zero."""
    number = parse_number(value)
    return None if number is None else int(number)


def parse_overtime(value: str) -> Optional[bool]:
    if not value:
        return None
    return value.lower() in OVERTIME_TRUE_VALUES


def parse_text(value: str) -> Optional[str]:
    return value or None


def _bounded(parse: Callable[[str], Optional[float]], low: Optional[float] = None,
             high: Optional[float] = None, exclusive_low: bool = False):
    def parse_in_range(value: str):
        number = parse(value)
        if number is None:
            return None
        if low is not None and (number <= low if exclusive_low else number < low):
            return None
        if high is not None and number > high:
            return None
        return number
    return parse_in_range


# Out-of-domain values are treated like malformed ones: unset, then defaulted.
FIELD_PARSERS: Dict[str, Callable[[str], object]] = {
    'name': parse_text,
    'department': parse_text,
    'job_role': parse_text,
    'age': _bounded(parse_int, low=0, exclusive_low=True),
    'years_at_company': _bounded(parse_int, low=0),
    'job_satisfaction': _bounded(parse_int, low=1, high=4),
    'monthly_income': _bounded(parse_number, low=0, exclusive_low=True),
    'overtime': parse_overtime,
    'work_life_balance': _bounded(parse_int, low=1, high=4),
    'distance_from_home': _bounded(parse_number, low=0),
    'num_companies_worked': _bounded(parse_int, low=0),
}


def read_frame(lines: List[str]) -> pd.DataFrame:
    """
    Load comma-separated lines into an all-text DataFrame.

    Quote characters are data here, not CSV quoting; ``clean_cell`` strips
    them afterwards. Short rows are padded with empty strings.
    """
    width = max(line.count(',') + 1 for line in lines)
    frame = pd.read_csv(
        io.StringIO('\n'.join(lines)),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        skip_blank_lines=True,
        engine='python',
    )
    return frame.fillna('').apply(lambda column: column.map(clean_cell))


def to_raw_row(headers: List[str], cells: Iterable[str]) -> RawRow:
    """Pair header labels with cell text, keeping every column in order."""
    return list(zip(headers, cells))


def normalize_row(raw: RawRow, row_number: int) -> EmployeeRecord:
    """
    Convert one raw row into a fully-defaulted EmployeeRecord.
    
    Never raises on malformed cells: anything unparseable falls back to
    the default for that field.
    
    Args:
        raw: (header label, cell text) pairs; for a field fed by several
            columns the first usable value wins
        row_number: 1-based data row index, used for the identifier and default name

    Returns:
        Canonical employee record
    """
    values: Dict[str, object] = {}
    for label, text in raw:
        field_name = match_column(label)
        if field_name is None or field_name in values:
            continue
        parsed = FIELD_PARSERS[field_name](text)
        if parsed is not None:
            values[field_name] = parsed

    for field_name, default in DEFAULTS.items():
        if field_name not in values:
            logger.debug("Row %d: %s missing or invalid, using %r", row_number, field_name, default)
            values[field_name] = default
    values.setdefault('name', f'Employee {row_number}')

    return EmployeeRecord(employee_id=f'EMP{row_number:03d}', **values)


def parse_employee_csv(text: str, max_rows: int = MAX_DATA_ROWS) -> ParsedUpload:
    """
    Parse comma-separated employee data into canonical records.
    
    The first non-blank line is the header. At most ``max_rows`` data lines
    are normalized; the rest are counted but skipped.
    
    Args:
        text: Decoded file contents
        max_rows: Cap on data rows to normalize
    
    Returns:
        ParsedUpload; ``has_data`` is False for empty or header-only input
    """
    lines = [line for line in re.split(r'\r?\n', text) if line.strip()]
    if len(lines) < 2:
        logger.warning("No data rows found (%d non-blank lines)", len(lines))
        return ParsedUpload()

    frame = read_frame(lines)
    headers = [normalize_header(label) for label in frame.iloc[0]]
    data = frame.iloc[1:]
    total_rows = len(data)

    if total_rows > max_rows:
        logger.warning("Upload has %d data rows; only the first %d will be processed",
                       total_rows, max_rows)

    records = []
    kept = data.head(max_rows)
    for row_number, cells in enumerate(kept.itertuples(index=False, name=None), start=1):
        records.append(normalize_row(to_raw_row(headers, cells), row_number))

    logger.info("Parsed %d of %d data rows", len(records), total_rows)
    return ParsedUpload(records=records, total_rows=total_rows, processed_rows=len(records))


def decode_upload(file_bytes: bytes) -> str:
    """Decode uploaded bytes as UTF-8 (a leading BOM is tolerated)."""
    try:
        return file_bytes.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise IntakeError(f"Could not read uploaded file: {e}") from e


def read_upload(file_bytes: bytes) -> ParsedUpload:
    """
    Decode and parse an uploaded CSV.

    Raises:
        IntakeError: the bytes are not readable text
        ParseError: the file has no data rows
    """
    parsed = parse_employee_csv(decode_upload(file_bytes))
    if not parsed.has_data:
        raise ParseError("No valid employee data found. The file needs a header row and at least one data row.")
    return parsed


def load_employee_file(path: str) -> ParsedUpload:
    """Read a CSV from disk and parse it; any I/O failure is an IntakeError."""
    try:
        with open(path, 'rb') as f:
            file_bytes = f.read()
    except OSError as e:
        raise IntakeError(f"Could not read file '{path}': {e}") from e
    return read_upload(file_bytes)
