"""CSV ingestion for the bulk user export.

The whole file is validated and parsed before anything is sent to Webex: a bad
upload, a missing column or a malformed row fails the batch with a
``CsvProcessingError`` and no provider call is made.
"""
from __future__ import annotations
import csv
import io
import logging
from typing import Iterable, List, Optional, Sequence

from .exceptions import CsvProcessingError
from .models import RowRecord
from .validators import is_csv_upload, is_true_flag, validate_email

logger = logging.getLogger(__name__)

# CSV column names carrying a license flag, in the order licenses are assigned
LICENSE_COLUMNS = (
    "Webex Contact Center Premium Agent",
    "Webex Contact Center Standard Agent",
    "Webex Calling - Professional",
)

REQUIRED_COLUMNS = (
    "First Name",
    "Display Name",
    "Status",
    "Email",
    "Extension",
    "Location",
) + LICENSE_COLUMNS

MSG_EMPTY_FILE = "File is required and cannot be empty."
MSG_WRONG_TYPE = "The wrong type of file was provided. Must be a CSV file."
MSG_MISSING_COLUMNS = "File provided does not contain all the columns required to process the request."
MSG_BAD_EXTENSION = "At least one record in the CSV is not a valid number. No users have been created."


def decode_upload(
    raw: Optional[bytes],
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> str:
    """Check an uploaded file and return its text.

    Args:
        raw: File content
        filename: Name supplied by the client
        content_type: MIME type supplied by the client

    Returns:
        Decoded CSV text (UTF-8, BOM tolerated)

    Raises:
        CsvProcessingError: File missing, empty, not a CSV or not UTF-8
    """
    if not raw:
        raise CsvProcessingError(MSG_EMPTY_FILE)
    if not is_csv_upload(filename, content_type):
        raise CsvProcessingError(MSG_WRONG_TYPE)
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvProcessingError(f"An error occurred processing the CSV file: {exc}") from exc


def missing_columns(header: Iterable[str], required: Sequence[str] = REQUIRED_COLUMNS) -> List[str]:
    present = set(header)
    return [column for column in required if column not in present]


def parse_csv_records(text: str, required: Sequence[str] = REQUIRED_COLUMNS) -> List[RowRecord]:
    """Parse CSV text into row records, in file order.

    The header must contain every required column (exact, case-sensitive).
    Every data row must have as many fields as the header and a non-empty
    email. Blank lines are skipped.

    Args:
        text: Decoded CSV text, first line is the header
        required: Required column names

    Returns:
        List of RowRecord (may be empty when the file has only a header)

    Raises:
        CsvProcessingError: Missing columns or malformed row
    """
    reader = csv.reader(io.StringIO(text))
    try:
        header = [cell.strip() for cell in next(reader)]
    except StopIteration:
        raise CsvProcessingError(MSG_MISSING_COLUMNS)
    except csv.Error as exc:
        raise CsvProcessingError(f"An error occurred processing the CSV file: {exc}") from exc

    missing = missing_columns(header, required)
    if missing:
        logger.info("CSV rejected, missing columns: %s", ", ".join(missing))
        raise CsvProcessingError(MSG_MISSING_COLUMNS)

    records: List[RowRecord] = []
    try:
        for row in reader:
            if not row or not any(cell.strip() for cell in row):
                continue
            line_number = reader.line_num
            if len(row) != len(header):
                raise CsvProcessingError(
                    f"Line {line_number} of the CSV has {len(row)} fields but the header has {len(header)}. "
                    "No users have been created."
                )
            values = {column: cell.strip() for column, cell in zip(header, row)}
            records.append(_to_record(values, line_number))
    except csv.Error as exc:
        raise CsvProcessingError(f"An error occurred processing the CSV file: {exc}") from exc

    logger.debug("Parsed %d CSV records", len(records))
    return records


def _to_record(values: dict, line_number: int) -> RowRecord:
    try:
        email = validate_email(values.get("Email", ""))
    except ValueError as exc:
        raise CsvProcessingError(
            f"Line {line_number} of the CSV: {exc}. No users have been created."
        ) from exc
    return RowRecord(
        line_number=line_number,
        first_name=values.get("First Name", ""),
        last_name=values.get("Last Name", ""),
        display_name=values.get("Display Name", ""),
        status=values.get("Status", ""),
        email=email,
        extension=values.get("Extension", ""),
        location_name=values.get("Location", ""),
        license_flags={column: is_true_flag(values.get(column)) for column in LICENSE_COLUMNS},
    )
