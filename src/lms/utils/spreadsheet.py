"""
Spreadsheet parsing for bulk user import
Expected columns: name, email, password, role, teacherEmail (students only)
"""
import io
from typing import Dict, List, Tuple

import pandas as pd
from loguru import logger
from pydantic import ValidationError

from lms.errors import BadRequestError
from lms.models.schemas import ImportedUserRow

EXCEL_EXTENSIONS = ('.xlsx', '.xls', '.xlsm')
EXCEL_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
    "application/excel",
    "application/x-excel",
}

# Header spellings seen in exported sheets
COLUMN_ALIASES = {
    "teacheremail": "teacherEmail",
    "teacher_email": "teacherEmail",
    "teacher email": "teacherEmail",
    "full_name": "name",
    "full name": "name",
}


def read_table(data: bytes, filename: str, content_type: str = None) -> pd.DataFrame:
    """Load the first sheet of an Excel workbook (or a CSV file) into a DataFrame"""
    name = (filename or "").lower()
    is_csv = name.endswith('.csv') or content_type == "text/csv"
    is_excel = name.endswith(EXCEL_EXTENSIONS) or content_type in EXCEL_MIME_TYPES
    if not is_csv and not is_excel:
        raise BadRequestError("Invalid file type. Only Excel or CSV files are allowed")

    try:
        if is_csv:
            df = pd.read_csv(io.BytesIO(data), dtype=str)
        else:
            df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=str)
    except Exception as e:
        logger.error(f"Failed to parse spreadsheet {filename}: {e}")
        raise BadRequestError(f"Failed to parse spreadsheet: {e}") from e

    renamed = {}
    for col in df.columns:
        key = str(col).strip()
        renamed[col] = COLUMN_ALIASES.get(key.lower(), key.lower())
    return df.rename(columns=renamed)


def parse_user_rows(data: bytes, filename: str, content_type: str = None) -> Tuple[List[ImportedUserRow], List[str]]:
    """
    Parse and validate user rows

    Returns:
        (valid rows, per-row error messages). Rows that fail validation are reported
        and skipped; a sheet with no valid row at all is rejected.
    """
    df = read_table(data, filename, content_type)
    if df.empty:
        raise BadRequestError("No data found in the uploaded file")

    rows: List[ImportedUserRow] = []
    errors: List[str] = []
    for idx, record in enumerate(df.to_dict(orient="records"), start=2):
        cleaned: Dict[str, str] = {
            k: str(v).strip() for k, v in record.items() if v is not None and not pd.isna(v) and str(v).strip()
        }
        if not cleaned:
            continue
        try:
            rows.append(ImportedUserRow(**cleaned))
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            errors.append(f"Row {idx} ({cleaned.get('email', '?')}): {messages}")

    if not rows:
        raise BadRequestError("No valid data found in the uploaded file. Errors: " + " | ".join(errors))
    if errors:
        logger.warning(f"Skipped {len(errors)} invalid rows: {errors}")
    logger.info(f"Parsed {len(rows)} user rows from {filename}")
    return rows, errors
